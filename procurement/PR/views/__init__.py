"""
Material Request Views Package

- request_views: request groups and row-level workflow actions
- draft_views: site engineer drafts

All views are exported here for convenient importing.
"""

from procurement.PR.views.request_views import (
    request_list,
    request_detail,
    request_pending,
    request_update_status,
    request_bulk_update_status,
    request_update_details,
    request_resubmit,
    request_fulfil_from_stock,
)

from procurement.PR.views.draft_views import (
    draft_list,
    draft_detail,
    draft_send,
)

__all__ = [
    # Requests
    'request_list',
    'request_detail',
    'request_pending',
    'request_update_status',
    'request_bulk_update_status',
    'request_update_details',
    'request_resubmit',
    'request_fulfil_from_stock',

    # Drafts
    'draft_list',
    'draft_detail',
    'draft_send',
]
