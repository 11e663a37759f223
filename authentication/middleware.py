# =============== MIDDLEWARE FOR RESTAURANT CONTEXT ===============
import uuid


def _parse_uuid(value):
    if not value:
        return None
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


class RestaurantContextMiddleware:
    """
    Read the restaurant / branch a request targets from headers.

    Staff are always bound to the restaurant of their role, so these headers
    only matter for system admins acting on a tenant's behalf.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.restaurant_id_header = _parse_uuid(request.META.get('HTTP_X_RESTAURANT_ID'))
        request.branch_id_header = _parse_uuid(request.META.get('HTTP_X_BRANCH_ID'))

        response = self.get_response(request)
        return response
