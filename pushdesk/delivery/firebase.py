"""Firebase Cloud Messaging implementation of PushProvider.

Wraps firebase_admin.messaging.send_each_for_multicast. The Firebase app is
created under its own name and passed explicitly to every call, so nothing
depends on the SDK's global default app.
"""

from typing import List, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from pushdesk.config.environment import EnvironmentConfig
from pushdesk.config.exceptions import ConfigurationError
from pushdesk.logging import get_logger

from .classification import normalize_error_code
from .exceptions import ProviderConfigurationError, ProviderUnavailableError
from .models import EndpointResponse, PushMessage
from .provider import PushProvider

logger = get_logger(__name__, component="provider")

DEFAULT_APP_NAME = "pushdesk"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Checked in order; subclasses before their bases.
_EXCEPTION_CODES = (
    (messaging.UnregisteredError, "unregistered"),
    (messaging.SenderIdMismatchError, "sender-id-mismatch"),
    (messaging.QuotaExceededError, "quota-exceeded"),
    (messaging.ThirdPartyAuthError, "third-party-auth-error"),
    (exceptions.InvalidArgumentError, "invalid-argument"),
    (exceptions.UnavailableError, "unavailable"),
    (exceptions.InternalError, "internal"),
    (exceptions.DeadlineExceededError, "timeout"),
)


def error_code_for(exc: Optional[BaseException]) -> str:
    """Reduce a Firebase exception to a normalised error code."""
    if exc is None:
        return "unknown"
    for exc_type, code in _EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            return code
    return normalize_error_code(getattr(exc, "code", None))


def build_multicast_message(message: PushMessage, endpoints: Sequence[str]) -> messaging.MulticastMessage:
    """Build the FCM payload: high priority on Android, sound and badge on APNs."""
    data = {"sent_at": message.sent_at.isoformat()}
    if message.action_url:
        data["click_action"] = message.action_url

    return messaging.MulticastMessage(
        tokens=list(endpoints),
        notification=messaging.Notification(
            title=message.title,
            body=message.body,
            image=message.image_url,
        ),
        data=data,
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                sound="default",
                channel_id="default",
                priority="high",
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(aps=messaging.Aps(sound="default", badge=1)),
        ),
    )


class FirebaseProvider(PushProvider):
    """PushProvider backed by the Firebase Admin SDK."""

    max_endpoints_per_call = 500

    def __init__(self, app: firebase_admin.App, dry_run: bool = False):
        """Initialize with an already created Firebase app.

        Args:
            app: Firebase app used for every send
            dry_run: Validate messages with FCM without delivering them
        """
        self.app = app
        self.dry_run = dry_run

    @classmethod
    def from_environment(
        cls, env_config: EnvironmentConfig, app_name: str = DEFAULT_APP_NAME, dry_run: bool = False
    ) -> "FirebaseProvider":
        """Create (or reuse) a named Firebase app from service account variables.

        Raises:
            ProviderConfigurationError: If credentials are missing or rejected
        """
        try:
            env_config.require_firebase_credentials()
        except ConfigurationError as e:
            raise ProviderConfigurationError(str(e)) from e

        try:
            app = firebase_admin.get_app(app_name)
        except ValueError:
            try:
                certificate = credentials.Certificate(
                    {
                        "type": "service_account",
                        "project_id": env_config.firebase_project_id,
                        "client_email": env_config.firebase_client_email,
                        "private_key": env_config.firebase_private_key,
                        "token_uri": GOOGLE_TOKEN_URI,
                    }
                )
                app = firebase_admin.initialize_app(
                    certificate,
                    options={"projectId": env_config.firebase_project_id},
                    name=app_name,
                )
            except ValueError as e:
                raise ProviderConfigurationError(f"Firebase initialization failed: {e}") from e

            logger.info(
                "Firebase app initialized",
                extra={"event": "provider.initialized", "project_id": env_config.firebase_project_id},
            )

        return cls(app, dry_run=dry_run)

    def send_multicast(
        self, message: PushMessage, endpoints: Sequence[str]
    ) -> List[EndpointResponse]:
        """Send one multicast call and map each SendResponse to an EndpointResponse.

        Raises:
            ProviderUnavailableError: If the SDK call raised instead of returning responses
        """
        if len(endpoints) > self.max_endpoints_per_call:
            raise ValueError(
                f"At most {self.max_endpoints_per_call} endpoints per call, got: {len(endpoints)}"
            )

        payload = build_multicast_message(message, endpoints)
        try:
            batch_response = messaging.send_each_for_multicast(
                payload, dry_run=self.dry_run, app=self.app
            )
        except exceptions.FirebaseError as e:
            raise ProviderUnavailableError(
                f"FCM multicast failed: {e}", error_code=error_code_for(e)
            ) from e
        except Exception as e:
            raise ProviderUnavailableError(f"FCM multicast failed: {e}") from e

        responses = []
        for endpoint, send_response in zip(endpoints, batch_response.responses):
            if send_response.success:
                responses.append(
                    EndpointResponse(endpoint, True, message_id=send_response.message_id)
                )
            else:
                responses.append(
                    EndpointResponse(endpoint, False, error_code=error_code_for(send_response.exception))
                )

        logger.debug(
            "FCM multicast completed",
            extra={
                "event": "provider.multicast.completed",
                "success_count": batch_response.success_count,
                "failure_count": batch_response.failure_count,
            },
        )
        return responses
