from typing import Any, Dict


class PaymentsProvider:
    """base payments gateway interface."""

    name = "base"

    def create_order(self, amount: int, currency: str, receipt: str) -> Dict[str, Any]:
        raise NotImplementedError

    def create_subscription(self, plan_id: str, total_count: int, customer_notify: bool = True) -> Dict[str, Any]:
        raise NotImplementedError

    def list_payments(self, count: int = 1) -> Dict[str, Any]:
        raise NotImplementedError

    def health_check(self) -> Dict[str, str]:
        return {"status": "unknown", "provider": self.name}

    def close(self) -> None:
        pass
