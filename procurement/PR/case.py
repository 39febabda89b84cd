"""
ProcurementCase: one request group and everything hanging off it.

Every workflow operation loads the case for the request number it touches,
row-locking the request items together with their purchase orders and cost
comparisons, and makes all of its changes through the case inside one
transaction. Request, PO and cost comparison statuses therefore always move
together.
"""
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from procurement.cost_comparison.models import CostComparison
from procurement.exceptions import NotFound
from procurement.po.models import POStatus, PurchaseOrder
from procurement.PR.models import MaterialRequest, RequestStatus
from procurement.PR.workflow import project_group_status


class ProcurementCase:

    def __init__(self, request_number, items, purchase_orders, comparisons):
        self.request_number = request_number
        self._items = {item.pk: item for item in items}
        self._purchase_orders = {po.pk: po for po in purchase_orders}
        self._comparisons = {cc.request_id: cc for cc in comparisons}

    # ==================== LOADING ====================

    @classmethod
    def load(cls, request_number, lock=True):
        """
        Load (and, inside a transaction, lock) the whole group.

        Raises NotFound when no item carries ``request_number``.
        """
        items = MaterialRequest.objects.filter(request_number=request_number)
        purchase_orders = PurchaseOrder.objects.filter(request__request_number=request_number)
        comparisons = CostComparison.objects.filter(request__request_number=request_number)
        if lock and transaction.get_connection().in_atomic_block:
            items = items.select_for_update()
            purchase_orders = purchase_orders.select_for_update(of=('self',))
            comparisons = comparisons.select_for_update(of=('self',))

        items = list(items.order_by('item_order', 'id'))
        if not items:
            raise NotFound(f"Request #{request_number} not found")
        return cls(
            request_number,
            items,
            list(purchase_orders.order_by('created_at', 'id')),
            list(comparisons),
        )

    @classmethod
    def for_request(cls, request_id, lock=True):
        request_number = MaterialRequest.objects.filter(pk=request_id).values_list(
            'request_number', flat=True
        ).first()
        if request_number is None:
            raise NotFound(f"Request item {request_id} not found")
        return cls.load(request_number, lock=lock)

    @classmethod
    def for_purchase_order(cls, po_id, lock=True):
        """Return ``(case, purchase_order)`` for a PO id."""
        request_id = PurchaseOrder.objects.filter(pk=po_id).values_list('request_id', flat=True).first()
        if request_id is None:
            raise NotFound(f"Purchase order {po_id} not found")
        case = cls.for_request(request_id, lock=lock)
        return case, case.purchase_order(po_id)

    # ==================== READ VIEWS ====================

    @property
    def items(self):
        return sorted(self._items.values(), key=lambda item: (item.item_order, item.pk))

    def item(self, request_id):
        try:
            return self._items[int(request_id)]
        except (KeyError, TypeError, ValueError):
            raise NotFound(f"Request item {request_id} not found in request #{self.request_number}")

    @property
    def status(self):
        return project_group_status(self.items)

    def purchase_orders(self, request_id=None):
        orders = sorted(self._purchase_orders.values(), key=lambda po: (po.created_at, po.pk))
        if request_id is None:
            return orders
        return [po for po in orders if po.request_id == int(request_id)]

    def purchase_order(self, po_id):
        try:
            return self._purchase_orders[int(po_id)]
        except (KeyError, TypeError, ValueError):
            raise NotFound(f"Purchase order {po_id} not found")

    def latest_purchase_order(self, request_id, statuses):
        """Most recently created PO of an item whose status is in ``statuses``."""
        candidates = [po for po in self.purchase_orders(request_id) if po.status in statuses]
        return candidates[-1] if candidates else None

    def purchase_orders_for_line(self, line_item_key):
        """POs issued against any row of one logical line item."""
        item_ids = {item.pk for item in self._items.values() if item.line_item_key == line_item_key}
        return [po for po in self.purchase_orders() if po.request_id in item_ids]

    def cost_comparison(self, request_id):
        return self._comparisons.get(int(request_id))

    def line_quantity(self, line_item_key):
        """Sum of quantities over every row of one logical line item."""
        return sum(
            (item.quantity for item in self._items.values() if item.line_item_key == line_item_key),
            Decimal('0')
        )

    def line_rows(self, line_item_key):
        return [item for item in self.items if item.line_item_key == line_item_key]

    # ==================== REQUEST ITEM CHANGES ====================

    def update_item(self, item, **changes):
        for field, value in changes.items():
            setattr(item, field, value)
        item.full_clean(exclude=['site', 'created_by', 'delivery', 'split_from', 'approved_by'])
        item.save()
        return item

    def transition(self, item, to_status, allowed_from, action, **changes):
        """Move ``item`` to ``to_status`` if its current status allows it."""
        item.ensure_status(allowed_from, action)
        return self.update_item(item, status=to_status, **changes)

    def add_item(self, **fields):
        fields.setdefault('request_number', self.request_number)
        item = MaterialRequest(**fields)
        item.full_clean(exclude=['site', 'created_by', 'delivery', 'split_from', 'approved_by'])
        item.save()
        self._items[item.pk] = item
        return item

    def remove_item(self, item):
        del self._items[item.pk]
        item.delete()

    def split(self, item, quantity, **clone_changes):
        """
        Split ``quantity`` off ``item`` into a new row.

        The new row carries ``quantity`` plus ``clone_changes``; the original
        keeps its status and the remaining quantity. Both share the logical
        line item, so the line's total quantity is unchanged.
        """
        clone = item.clone_for_split(quantity)
        for field, value in clone_changes.items():
            setattr(clone, field, value)
        clone.save()
        self._items[clone.pk] = clone
        self.update_item(item, quantity=item.quantity - quantity)
        return clone

    # ==================== PURCHASE ORDER / COST COMPARISON CHANGES ====================

    def add_purchase_order(self, po):
        """Save a new (unsaved) PurchaseOrder into the case."""
        po.full_clean(exclude=['request', 'vendor', 'delivery_site', 'created_by', 'approved_by'])
        po.save()
        self._purchase_orders[po.pk] = po
        return po

    def update_purchase_order(self, po, **changes):
        for field, value in changes.items():
            setattr(po, field, value)
        po.save()
        return po

    def save_cost_comparison(self, request_item, **fields):
        """Create or update the single cost comparison of ``request_item``."""
        comparison = self._comparisons.get(request_item.pk)
        if comparison is None:
            comparison = CostComparison(request=request_item)
        for field, value in fields.items():
            setattr(comparison, field, value)
        comparison.save()
        self._comparisons[request_item.pk] = comparison
        return comparison

    # ==================== DELIVERY ROLL-UP ====================

    def settle_line(self, item):
        """
        Close what ``item``'s delivery completes: its challan once every item
        on it is delivered, and the line's POs once every row of the line is.
        """
        delivery = item.delivery
        if delivery is not None and delivery.status == 'pending' and delivery.is_complete():
            delivery.status = 'delivered'
            delivery.delivered_at = timezone.now()
            delivery.save(update_fields=['status', 'delivered_at', 'updated_at'])

        rows = self.line_rows(item.line_item_key)
        if rows and all(row.status == RequestStatus.DELIVERED for row in rows):
            for po in self.purchase_orders_for_line(item.line_item_key):
                if po.status in (POStatus.ORDERED, POStatus.APPROVED):
                    self.update_purchase_order(po, status=POStatus.DELIVERED)
