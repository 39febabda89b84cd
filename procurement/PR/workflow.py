"""
Request status rules.

Which statuses each role may move a request item between, and the
projection of a request group's item statuses onto one display status.
"""
from dataclasses import dataclass
from typing import Iterable, Tuple, Union

from procurement.PR.models import RequestStatus as S, DirectAction


# Manager decisions on a pending item: requested status -> (stored status, direct action).
# "direct_po" and "delivery_stage" route the item back to the purchase officer
# for recheck, tagged with the shortcut the manager chose.
MANAGER_DECISIONS = {
    S.APPROVED: (S.APPROVED, ''),
    S.REJECTED: (S.REJECTED, ''),
    S.RECHECK: (S.RECHECK, ''),
    S.DIRECT_PO: (S.RECHECK, DirectAction.PO),
    S.DELIVERY_STAGE: (S.RECHECK, DirectAction.DELIVERY),
}

MANAGER_DECISION_FROM = frozenset({S.PENDING})

PURCHASE_OFFICER_TRANSITIONS = {
    S.APPROVED: frozenset({S.READY_FOR_CC, S.READY_FOR_PO}),
    S.RECHECK: frozenset({S.READY_FOR_CC, S.REJECTED, S.READY_FOR_PO, S.READY_FOR_DELIVERY, S.DELIVERY_STAGE}),
    S.READY_FOR_CC: frozenset({S.CC_PENDING, S.CC_REJECTED, S.READY_FOR_PO, S.DELIVERY_STAGE, S.READY_FOR_DELIVERY}),
    S.CC_PENDING: frozenset({S.CC_APPROVED, S.CC_REJECTED, S.READY_FOR_CC}),
    S.CC_APPROVED: frozenset({S.READY_FOR_PO}),
    S.CC_REJECTED: frozenset({S.READY_FOR_CC}),
    S.READY_FOR_PO: frozenset({S.PENDING_PO, S.DELIVERY_STAGE, S.READY_FOR_DELIVERY}),
    S.PENDING_PO: frozenset({S.READY_FOR_DELIVERY, S.REJECTED_PO}),
    S.REJECTED_PO: frozenset({S.READY_FOR_PO}),
    S.READY_FOR_DELIVERY: frozenset({S.DELIVERED}),
    S.DELIVERY_STAGE: frozenset({S.DELIVERED, S.READY_FOR_DELIVERY}),
}

# Transitions into these statuses must carry a reason.
REJECTION_STATUSES = frozenset({S.REJECTED, S.CC_REJECTED, S.REJECTED_PO, S.SIGN_REJECTED})

# Items a purchase officer may still correct (quantity, unit, description).
DETAIL_EDITABLE = frozenset({S.APPROVED, S.RECHECK, S.READY_FOR_CC, S.CC_PENDING})

# Items a Direct PO may be (re)issued against. Anything later is signed and immutable.
DIRECT_PO_EDITABLE = frozenset({S.SIGN_PENDING, S.SIGN_REJECTED, S.READY_FOR_PO, S.DIRECT_PO})

# Items a cost comparison may be opened or edited for.
COST_COMPARISON_OPEN = frozenset({S.APPROVED, S.RECHECK, S.READY_FOR_CC, S.CC_PENDING, S.CC_REJECTED})

# Items a standard PO may be issued for.
PO_ISSUABLE = frozenset({S.CC_APPROVED, S.READY_FOR_PO})

# Items that may be loaded onto a delivery challan.
DELIVERABLE = frozenset({S.PENDING_PO, S.ORDERED, S.READY_FOR_DELIVERY, S.DELIVERY_STAGE})

# Items whose delivery may be confirmed.
CONFIRMABLE = frozenset({
    S.PENDING_PO, S.DELIVERY_PROCESSING, S.OUT_FOR_DELIVERY, S.READY_FOR_DELIVERY, S.DELIVERY_STAGE,
})

# Items that may be fulfilled (partly) from central stock.
STOCK_FULFILLABLE = frozenset({S.APPROVED, S.RECHECK, S.READY_FOR_CC, S.READY_FOR_PO})


def purchase_officer_targets(current_status):
    return PURCHASE_OFFICER_TRANSITIONS.get(current_status, frozenset())


# ==================== GROUP STATUS PROJECTION ====================

PARTIALLY_PROCESSED = 'partially_processed'


@dataclass(frozen=True)
class Uniform:
    """Every item of the group is in the same status."""
    status: str

    @property
    def label(self):
        return self.status

    @property
    def is_mixed(self):
        return False


@dataclass(frozen=True)
class Mixed:
    """Items of the group are in different statuses."""
    per_item_statuses: Tuple[Tuple[int, str], ...]

    @property
    def label(self):
        return PARTIALLY_PROCESSED

    @property
    def is_mixed(self):
        return True

    @property
    def statuses(self):
        return sorted({status for _, status in self.per_item_statuses})


GroupStatus = Union[Uniform, Mixed]


def project_group_status(items: Iterable) -> GroupStatus:
    """
    Collapse the statuses of a request group into one GroupStatus.

    ``items`` may be MaterialRequest rows or ``(item_order, status)`` pairs.
    Split rows of one line item count separately, so a partially delivered
    line makes the group Mixed.
    """
    pairs = []
    for item in items:
        if isinstance(item, tuple):
            pairs.append((int(item[0]), str(item[1])))
        else:
            pairs.append((item.item_order, str(item.status)))
    if not pairs:
        raise ValueError("Cannot project the status of an empty request group")

    statuses = {status for _, status in pairs}
    if len(statuses) == 1:
        return Uniform(statuses.pop())
    return Mixed(tuple(sorted(pairs)))
