# exceptions.py
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import APIException
from rest_framework import status
from django.core.exceptions import ValidationError
from django.db import IntegrityError
import logging
from django.conf import settings

from .messages import bilingual, describe_error, get_message

logger = logging.getLogger(__name__)


class POSError(APIException):
    """
    Business rule violation with a machine-readable code.

    The code is looked up in the bilingual message catalog, so views only
    raise ``POSError('order_not_open')`` and the handler renders both languages.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'unexpected'
    default_detail = 'Request could not be completed.'

    def __init__(self, code, message=None, status_code=None, extra=None):
        self.error_code = code
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(detail=message or get_message(code), code=code)


class SubscriptionExpired(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'SUBSCRIPTION_EXPIRED'
    default_detail = get_message('SUBSCRIPTION_EXPIRED')

    def payload(self):
        return {
            'success': False,
            'error': {'code': 'SUBSCRIPTION_EXPIRED'},
            **bilingual('SUBSCRIPTION_EXPIRED'),
        }


STATUS_CODES = {
    400: 'validation_error',
    401: 'not_authenticated',
    403: 'not_authorized',
    404: 'not_found',
    405: 'method_not_allowed',
    409: 'conflict',
}


def _audience(context):
    request = context.get('request') if context else None
    user_role = getattr(request, 'user_role', None) if request is not None else None
    if user_role is not None and user_role.role == 'cashier':
        return 'cashier'
    return 'owner'


def custom_exception_handler(exc, context):
    """
    Custom exception handler for the POS system
    """
    if isinstance(exc, SubscriptionExpired):
        return Response(exc.payload(), status=exc.status_code)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, POSError):
            code = exc.error_code
            message = str(exc.detail)
            details = exc.extra
        else:
            code = STATUS_CODES.get(response.status_code, 'unexpected')
            message = get_message(code)
            details = response.data

        response.data = {
            'error': True,
            'success': False,
            'code': code,
            'message': message,
            **bilingual(code),
            'details': details,
            'status_code': response.status_code,
        }

    # Handle Django ValidationError
    elif isinstance(exc, ValidationError):
        logger.warning("Validation Error: %s", exc)
        response = Response({
            'error': True,
            'success': False,
            'code': 'validation_error',
            'message': get_message('validation_error'),
            **bilingual('validation_error'),
            'details': {'non_field_errors': exc.messages},
            'status_code': 400
        }, status=status.HTTP_400_BAD_REQUEST)

    # Handle Django IntegrityError
    elif isinstance(exc, IntegrityError):
        logger.error("Integrity Error: %s", exc)
        mapped = describe_error(exc, _audience(context))
        response = Response({
            'error': True,
            'success': False,
            'code': mapped['code'],
            'message': mapped['message_en'],
            'message_en': mapped['message_en'],
            'message_ar': mapped['message_ar'],
            'details': {'error': 'This operation violates database constraints'},
            'status_code': 409
        }, status=status.HTTP_409_CONFLICT)

    # Handle unexpected errors
    else:
        logger.exception("Unexpected Error: %s", exc)
        mapped = describe_error(exc, _audience(context))
        response = Response({
            'error': True,
            'success': False,
            'code': 'unexpected',
            'message': get_message('unexpected'),
            **bilingual('unexpected'),
            'details': {'error': str(exc), 'mapped_code': mapped['code']} if settings.DEBUG else {},
            'status_code': 500
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return response
