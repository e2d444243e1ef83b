"""Payment gateway endpoints.

Gateway and signature failures are answered with a generic message;
the details only go to the logs.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.responses import error_response, success_response
from modules.payments.dtos import PaymentConfirmationDTO
from modules.payments.exceptions import GatewayError, SignatureMismatch
from modules.payments.gateway import build_payment_gateway
from modules.payments.serializers import (
    CreatePaymentIntentSerializer,
    PaymentConfirmationSerializer,
)
from modules.payments.services import PaymentService

PAYMENT_UNAVAILABLE_MESSAGE = "Payment could not be started, please try again."
PAYMENT_NOT_VERIFIED_MESSAGE = "Payment could not be verified, please try again."


class CreatePaymentIntentView(APIView):
    """POST /api/v1/payments/create-razorpay-order/"""

    throttle_scope = "payment"

    def post(self, request: Request) -> Response:
        serializer = CreatePaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = PaymentService(gateway=build_payment_gateway())
        try:
            intent = service.create_intent(
                data["amount"], data["currency"], user_id=str(request.user.pk)
            )
        except GatewayError:
            return error_response(
                PAYMENT_UNAVAILABLE_MESSAGE, status=status.HTTP_502_BAD_GATEWAY
            )

        return success_response(
            {"id": intent.intent_id, "currency": intent.currency, "amount": intent.amount}
        )


class VerifyPaymentView(APIView):
    """POST /api/v1/payments/verify-payment/"""

    throttle_scope = "payment"

    def post(self, request: Request) -> Response:
        serializer = PaymentConfirmationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = PaymentService(gateway=build_payment_gateway())
        try:
            service.verify(
                PaymentConfirmationDTO(**serializer.validated_data),
                user_id=str(request.user.pk),
            )
        except SignatureMismatch:
            return Response(
                {
                    "success": False,
                    "status": "failure",
                    "message": PAYMENT_NOT_VERIFIED_MESSAGE,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {
                "success": True,
                "status": "success",
                "message": "Payment verified successfully",
            }
        )
