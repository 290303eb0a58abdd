from typing import Any, Dict


class DonationAPIError(Exception):
    """base error: carries the HTTP status and the JSON body it renders to."""

    status_code: int = 500

    # positional-only so a "message" detail can ride along in the body
    def __init__(self, message: str, /, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.message}
        body.update(self.details)
        return body


class InvalidInput(DonationAPIError):
    status_code = 400


class SignatureInvalid(DonationAPIError):
    status_code = 400


class ServerMisconfigured(DonationAPIError):
    status_code = 500


class GatewayError(DonationAPIError):
    status_code = 500


class StoreUnavailable(DonationAPIError):
    status_code = 503


class StoreError(DonationAPIError):
    status_code = 500


class DuplicatePayment(StoreError):
    status_code = 409
