"""EmailSender protocol: services depend on this, not the concrete implementation.

Every method either completes or raises errors.EmailDeliveryError; a failed
send fails the request that triggered it.
"""

from typing import Protocol


class EmailSender(Protocol):
    async def send_verification_email(self, email: str, link: str) -> None: ...

    async def send_verification_otp(self, email: str, otp_code: str) -> None: ...

    async def send_reset_password_url(self, email: str, link: str) -> None: ...
