from dataclasses import dataclass, field
from typing import List, Dict, Any
import logging

from core_backend.exceptions import AvailabilityError, ValidationError
from .models import ItemSize, AddOn

logger = logging.getLogger(__name__)


@dataclass
class ResolvedLine:
    """A cart line re-read from the catalog with current prices."""

    item_size: ItemSize
    quantity: int
    add_ons: List[AddOn] = field(default_factory=list)

    @property
    def item(self):
        return self.item_size.item

    @property
    def category(self):
        return self.item_size.item.category


class CatalogService:
    """
    Resolves client cart lines against the live menu. Only ids and
    quantities are taken from the client; every price comes from here.
    """

    @staticmethod
    def resolve_lines(lines: List[Dict[str, Any]]) -> List[ResolvedLine]:
        if not lines:
            raise ValidationError("Order must contain at least one item")

        size_ids = {line["item_size_id"] for line in lines}
        add_on_ids = {a for line in lines for a in line.get("add_ons", [])}

        sizes = {
            s.id: s
            for s in ItemSize.objects.select_related("item__category").filter(id__in=size_ids)
        }
        add_ons = {a.id: a for a in AddOn.objects.filter(id__in=add_on_ids)}

        resolved = []
        for line in lines:
            quantity = line.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                raise ValidationError("Quantity must be a positive integer", field="quantity")

            size = sizes.get(line["item_size_id"])
            if size is None:
                raise AvailabilityError(
                    f"Item size {line['item_size_id']} does not exist",
                    item_size_id=line["item_size_id"],
                )
            if not size.is_orderable:
                logger.info(f"Rejected unavailable item size {size.id} ({size})")
                raise AvailabilityError(
                    f"'{size}' is currently unavailable", item_size_id=size.id
                )

            line_add_ons = []
            for add_on_id in line.get("add_ons", []):
                add_on = add_ons.get(add_on_id)
                if add_on is None:
                    raise AvailabilityError(
                        f"Add-on {add_on_id} does not exist", add_on_id=add_on_id
                    )
                if not add_on.is_available:
                    raise AvailabilityError(
                        f"Add-on '{add_on.name}' is currently unavailable", add_on_id=add_on_id
                    )
                line_add_ons.append(add_on)

            resolved.append(ResolvedLine(item_size=size, quantity=quantity, add_ons=line_add_ons))

        return resolved
