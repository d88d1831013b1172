"""Push provider client capability.

The dispatcher talks to the provider only through PushProvider, so a fake
client can stand in for the real one.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from .models import EndpointResponse, PushMessage


class PushProvider(ABC):
    """A client able to send one message to many endpoints in one call."""

    #: Largest number of endpoints accepted by send_multicast.
    max_endpoints_per_call: int = 500

    @abstractmethod
    def send_multicast(
        self, message: PushMessage, endpoints: Sequence[str]
    ) -> List[EndpointResponse]:
        """Send message to every endpoint.

        Implementations return one EndpointResponse per endpoint, in the same
        order, with error codes already normalised.

        Raises:
            ProviderUnavailableError: If the call as a whole could not complete
        """
        pass
