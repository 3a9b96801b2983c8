"""
SSLCommerz API client for hosted checkout sessions.

Provides async methods for:
- Opening a hosted payment session (customer is redirected to the gateway)
- Validating a completed transaction by its ``val_id``
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import urlparse

import httpx
from libs.common.config import get_settings
from libs.common.errors import GatewayUnavailable, ValidationError, ValidationMismatch
from libs.common.logging import get_logger

logger = get_logger(__name__)

INIT_PATH = "/gwprocess/v4/api.php"
VALIDATION_PATH = "/validator/api/validationserverAPI.php"

VALID_STATUSES = frozenset({"VALID", "VALIDATED"})


@dataclass
class GatewaySessionRequest:
    """What the gateway needs to open a checkout session."""

    transaction_id: str
    amount: float
    success_url: str
    fail_url: str
    cancel_url: str
    customer_name: str
    customer_email: str
    customer_phone: str
    product_name: str
    product_category: str = "Donation"


@dataclass
class GatewaySessionCreated:
    redirect_url: str
    session_key: Optional[str]
    raw: dict = field(default_factory=dict)


@dataclass
class GatewaySessionRejected:
    """The gateway answered but refused to open a session."""

    reason: str
    raw: dict = field(default_factory=dict)


GatewayInitResult = Union[GatewaySessionCreated, GatewaySessionRejected]


@dataclass
class GatewayValidation:
    """Result of the validation API for a single ``val_id``."""

    status: Optional[str]
    transaction_id: Optional[str]
    amount: Optional[float]
    currency: Optional[str]
    val_id: Optional[str] = None
    raw: dict = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.status in VALID_STATUSES

    def ensure_matches(
        self, transaction_id: str, amount: float, tolerance: float = 1.0
    ) -> None:
        """
        Raise ValidationMismatch unless the gateway confirms this exact payment.

        Args:
            transaction_id: Transaction id we issued for the payment
            amount: Amount we expected to be charged
            tolerance: Largest accepted absolute difference in amount
        """
        if not self.is_valid:
            raise ValidationMismatch(
                "Transaction could not be validated",
                details={"status": self.status},
            )
        if self.transaction_id != transaction_id:
            raise ValidationMismatch(
                "Transaction ID mismatch",
                details={"expected": transaction_id, "received": self.transaction_id},
            )
        paid = self.amount
        if paid is not None and not math.isfinite(paid):
            paid = None
        if paid is None or abs(paid - float(amount)) > tolerance:
            raise ValidationMismatch(
                "Paid amount does not match the expected amount",
                details={"expected": float(amount), "received": paid},
            )


def _parse_amount(value) -> Optional[float]:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return amount if math.isfinite(amount) else None


def _is_absolute_http_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class SSLCommerzClient:
    """Async client for the SSLCommerz session and validation APIs."""

    def __init__(
        self,
        store_id: str = None,
        store_password: str = None,
        base_url: str = None,
        currency: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        settings = get_settings()
        self.store_id = store_id or settings.SSLCOMMERZ_STORE_ID
        self.store_password = store_password or settings.SSLCOMMERZ_STORE_PASSWORD
        self.base_url = (base_url or settings.sslcommerz_base_url).rstrip("/")
        self.currency = currency or settings.SSLCOMMERZ_CURRENCY
        self.timeout = timeout or settings.SSLCOMMERZ_TIMEOUT_SECONDS
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        params: dict = None,
        form_data: dict = None,
    ) -> dict:
        """Make an async request to SSLCommerz and return the decoded JSON body."""
        if not self.store_id or not self.store_password:
            logger.error("SSLCOMMERZ_STORE_ID / SSLCOMMERZ_STORE_PASSWORD not configured")
            raise GatewayUnavailable("Payment gateway is not configured")

        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method, url=url, params=params, data=form_data
                )
        except httpx.HTTPError as exc:
            logger.error(
                f"SSLCommerz request failed: {type(exc).__name__}: {exc}",
                extra={"extra_fields": {"path": path}},
            )
            raise GatewayUnavailable(
                "Payment gateway is unreachable", details={"error": str(exc)}
            ) from exc

        if not response.is_success:
            logger.error(f"SSLCommerz API error: {response.status_code} - {response.text}")
            raise GatewayUnavailable(
                "Payment gateway returned an error",
                details={"status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as exc:
            logger.error(f"SSLCommerz returned a non-JSON body for {path}")
            raise GatewayUnavailable("Payment gateway returned an invalid response") from exc

        if not isinstance(data, dict):
            raise GatewayUnavailable("Payment gateway returned an invalid response")
        return data

    # =========================================================================
    # Session Methods
    # =========================================================================

    async def initiate_session(self, request: GatewaySessionRequest) -> GatewayInitResult:
        """
        Open a hosted checkout session.

        Returns:
            GatewaySessionCreated with the page to redirect the customer to, or
            GatewaySessionRejected carrying the gateway's stated reason.

        Raises:
            ValidationError: amount is not positive or a callback URL is not absolute
            GatewayUnavailable: network failure, timeout or malformed response
        """
        if request.amount is None or float(request.amount) <= 0:
            raise ValidationError("Amount must be greater than 0")
        for name in ("success_url", "fail_url", "cancel_url"):
            if not _is_absolute_http_url(getattr(request, name)):
                raise ValidationError(f"{name} must be an absolute http(s) URL")

        form_data = {
            "store_id": self.store_id,
            "store_passwd": self.store_password,
            "total_amount": f"{float(request.amount):.2f}",
            "currency": self.currency,
            "tran_id": request.transaction_id,
            "success_url": request.success_url,
            "fail_url": request.fail_url,
            "cancel_url": request.cancel_url,
            "cus_name": request.customer_name,
            "cus_email": request.customer_email,
            "cus_add1": "Dhaka",
            "cus_city": "Dhaka",
            "cus_country": "Bangladesh",
            "cus_phone": request.customer_phone,
            "shipping_method": "NO",
            "product_name": request.product_name,
            "product_category": request.product_category,
            "product_profile": "non-physical",
        }

        data = await self._request("POST", INIT_PATH, form_data=form_data)

        redirect_url = data.get("GatewayPageURL")
        if redirect_url and data.get("status") != "FAILED":
            return GatewaySessionCreated(
                redirect_url=redirect_url,
                session_key=data.get("sessionkey"),
                raw=data,
            )

        reason = (
            data.get("failedreason")
            or data.get("error")
            or "Payment gateway initialization failed"
        )
        logger.warning(
            f"SSLCommerz refused session for {request.transaction_id}: {reason}",
            extra={"extra_fields": {"tran_id": request.transaction_id}},
        )
        return GatewaySessionRejected(reason=reason, raw=data)

    # =========================================================================
    # Validation Methods
    # =========================================================================

    async def validate_transaction(self, val_id: str) -> GatewayValidation:
        """
        Ask the gateway whether ``val_id`` belongs to a settled payment.

        Raises:
            GatewayUnavailable: network failure, timeout or malformed response
        """
        data = await self._request(
            "GET",
            VALIDATION_PATH,
            params={
                "val_id": val_id,
                "store_id": self.store_id,
                "store_passwd": self.store_password,
                "format": "json",
            },
        )

        return GatewayValidation(
            status=data.get("status"),
            transaction_id=data.get("tran_id"),
            amount=_parse_amount(data.get("amount")),
            currency=data.get("currency") or data.get("currency_type"),
            val_id=data.get("val_id", val_id),
            raw=data,
        )


def get_gateway_client() -> SSLCommerzClient:
    """FastAPI dependency returning a configured SSLCommerzClient."""
    return SSLCommerzClient()
