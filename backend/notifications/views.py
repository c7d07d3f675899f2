from django.db.models import Q
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Notification
from .serializers import NotificationSerializer


def notifications_for(user):
    query = Q(recipient=user)
    if user.is_restaurant_staff:
        query |= Q(for_staff=True)
    return Notification.objects.filter(query)


class NotificationListView(generics.ListAPIView):
    serializer_class = NotificationSerializer

    def get_queryset(self):
        queryset = notifications_for(self.request.user)
        if self.request.query_params.get("unread") in ("1", "true"):
            queryset = queryset.filter(is_read=False)
        return queryset


class MarkNotificationsReadView(APIView):
    def post(self, request, *args, **kwargs):
        ids = request.data.get("ids")
        queryset = notifications_for(request.user).filter(is_read=False)
        if ids:
            queryset = queryset.filter(id__in=ids)
        updated = queryset.update(is_read=True)
        return Response({"updated": updated}, status=status.HTTP_200_OK)
