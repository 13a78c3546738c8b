"""Payment gateway interface used by BookRepository.buy."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class PaymentGateway(ABC):
    """Charges a buyer; implementations wrap a real provider such as Stripe."""

    @abstractmethod
    def charge(self, amount: int, token: str, buyer_email: str) -> Dict[str, Any]:
        """
        Charge `amount` cents using the client-side payment token.

        Returns:
            Provider charge record, stored on the Purchase

        Raises:
            Any exception aborts the purchase before anything is written.
        """
        pass


__all__ = ['PaymentGateway']
