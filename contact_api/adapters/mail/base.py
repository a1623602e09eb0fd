from abc import ABC, abstractmethod
from email.message import EmailMessage


class AbstractMailRelay(ABC):
	"""Interface for transports that deliver fully built email messages."""

	@abstractmethod
	async def send(self, message: EmailMessage) -> None:
		"""Deliver a message to the relay.

		Args:
			message: Message with From/To/Subject headers and body already set.

		Raises:
			MailRelayAppError: If the relay rejects or cannot accept the message.
		"""
		...
