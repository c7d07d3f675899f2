from rest_framework import permissions
import logging

logger = logging.getLogger(__name__)


class IsStaffMember(permissions.BasePermission):
    """Restaurant staff (staff, manager, admin, owner)."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_restaurant_staff)


class IsOrderOwnerOrStaff(permissions.BasePermission):
    """
    Customers can only see and act on their own orders; staff can act on any.
    """

    def has_object_permission(self, request, view, obj):
        user = request.user
        if user.is_restaurant_staff:
            return True
        customer_id = getattr(obj, "customer_id", None)
        if customer_id is None and hasattr(obj, "order"):
            customer_id = obj.order.customer_id
        allowed = customer_id == user.id
        if not allowed:
            logger.warning(
                f"User {user.id} denied access to {obj.__class__.__name__} {obj.pk}"
            )
        return allowed
