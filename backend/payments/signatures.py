"""
HMAC-SHA256 signatures used by the gateway to sign payment callbacks and
webhook bodies.
"""
import hmac
import hashlib
from typing import Union


class SignatureService:
    """
    Computes and checks gateway signatures. Comparisons are constant time.
    """

    @staticmethod
    def compute_signature(message: Union[str, bytes], secret: str) -> str:
        """
        Hex HMAC-SHA256 of ``message`` keyed with ``secret``.

        Example:
            >>> len(SignatureService.compute_signature("order_1|pay_1", "secret"))
            64
        """
        if isinstance(message, str):
            message = message.encode("utf-8")
        return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    @staticmethod
    def payment_message(gateway_order_id: str, gateway_payment_id: str) -> str:
        return f"{gateway_order_id}|{gateway_payment_id}"

    @staticmethod
    def validate_signature(message: Union[str, bytes], signature: str, secret: str) -> bool:
        """
        True when ``signature`` is the HMAC of ``message``. Missing or
        malformed input is treated as a mismatch.
        """
        if not message or not signature or not secret:
            return False

        try:
            expected = SignatureService.compute_signature(message, secret)
            return hmac.compare_digest(expected, signature)
        except (ValueError, TypeError, AttributeError):
            return False
