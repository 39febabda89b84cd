"""
Read-only API views for the reference data the workflow consumes.
Maintaining sites, vendors and stock happens outside this service.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from core.user_accounts.models import Role
from procure_project.pagination import auto_paginate
from procure_project.response_formatter import success_response, error_response

from .models import Site, Vendor, InventoryItem
from .serializers import SiteSerializer, VendorSerializer, InventoryItemSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@auto_paginate
def site_list(request):
    """
    GET /procurement/catalog/sites/
    Active sites. Site engineers only see the sites assigned to them.
    - Query params: code, name, search
    """
    sites = Site.objects.active().filter_by_search_params(request.query_params)
    if request.user.role == Role.SITE_ENGINEER:
        sites = sites.filter(assigned_users=request.user)
    serializer = SiteSerializer(sites, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@auto_paginate
def vendor_list(request):
    """
    GET /procurement/catalog/vendors/
    Active vendors.
    - Query params: code, name, search
    """
    vendors = Vendor.objects.active().filter_by_search_params(request.query_params)
    serializer = VendorSerializer(vendors, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_lookup(request):
    """
    GET /procurement/catalog/inventory/lookup/?item_name=Cement
    Central stock for one item name; data is null when nothing is stocked.
    """
    item_name = request.query_params.get('item_name', '').strip()
    if not item_name:
        return error_response(
            message="item_name query parameter is required",
            status_code=status.HTTP_400_BAD_REQUEST
        )
    item = InventoryItem.lookup(item_name)
    return success_response(
        data=InventoryItemSerializer(item).data if item else None,
        message="" if item else f"No stock record for '{item_name}'"
    )
