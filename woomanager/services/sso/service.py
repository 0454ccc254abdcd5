"""Store-connection handshake over WooCommerce `wc-auth`.

`initiate` hands the client an authorization URL; WooCommerce later posts the
issued keys to the callback, which persists them and provisions webhooks.
There is no transaction across those two writes: a store whose webhooks failed
keeps its credentials and can simply repeat the handshake.
"""

from dataclasses import dataclass

from woomanager.common.config import settings
from woomanager.common.errors import NotFoundError, ValidationError
from woomanager.common.logging import logger, store_id_ctx
from woomanager.common.metrics import sso_handshakes_total
from woomanager.common.state_machine import HandshakeProgress
from woomanager.common.tracing import tracer
from woomanager.services.sso.token_codec import CorrelationToken, candidate_tokens, encode_correlation_token
from woomanager.services.webhooks.provisioner import ProvisioningReport, WebhookProvisioner
from woomanager.services.woocommerce.client import WooCommerceClient
from woomanager.services.woocommerce.urls import clean_url, extract_domain
from woomanager.stores.base import RecordStore
from woomanager.stores.schemas import StoreRecord


@dataclass
class CallbackResult:
    store: StoreRecord
    progress: HandshakeProgress
    webhooks: ProvisioningReport | None

    @property
    def webhook_status(self) -> str:
        return self.webhooks.status if self.webhooks is not None else "failed"


class SsoCoordinator:
    """Drives the redirect → callback → persist → provision sequence."""

    def __init__(
        self,
        records: RecordStore,
        woo: WooCommerceClient,
        provisioner: WebhookProvisioner,
        public_base_url: str,
        client_app_url: str,
        app_name: str = "WooManager",
        service_name: str | None = None,
    ) -> None:
        self.records = records
        self.woo = woo
        self.provisioner = provisioner
        self.public_base_url = public_base_url.rstrip("/")
        self.client_app_url = client_app_url.rstrip("/")
        self.app_name = app_name
        self.service_name = service_name or settings.service_name

    @property
    def callback_url(self) -> str:
        return f"{self.public_base_url}/sso/callback"

    @property
    def return_url(self) -> str:
        return f"{self.client_app_url}/#/sso-complete"

    async def initiate(self, store_url: str, app_user_id: str) -> str:
        """Build the authorization URL the client redirects the operator to."""

        store_url = (store_url or "").strip()
        app_user_id = (app_user_id or "").strip()
        if not store_url or not app_user_id:
            raise ValidationError("store_url and app_user_id are required")

        store = await self.records.find_store_by_app_user_id(app_user_id)
        if store is None:
            sso_handshakes_total.labels(service=self.service_name, step="start", outcome="not_found").inc()
            raise NotFoundError("unknown app_user_id")

        token = encode_correlation_token(app_user_id, extract_domain(store_url))
        auth_url = self.woo.build_authorization_url(
            store_url,
            app_name=self.app_name,
            user_id=token,
            return_url=self.return_url,
            callback_url=self.callback_url,
        )
        sso_handshakes_total.labels(service=self.service_name, step="start", outcome="ok").inc()
        logger.info("sso initiated store_id=%s domain=%s", store.id, extract_domain(store_url))
        return auth_url

    async def _resolve_token(self, correlation_token: str) -> tuple[CorrelationToken, StoreRecord]:
        """Match the token to exactly one known store; never guess between several."""

        candidates = candidate_tokens(correlation_token)
        if not candidates:
            raise ValidationError("correlation token carries no recognizable store domain")
        matches = []
        for candidate in candidates:
            store = await self.records.find_store_by_app_user_id(candidate.app_user_id)
            if store is not None:
                matches.append((candidate, store))
        if not matches:
            sso_handshakes_total.labels(service=self.service_name, step="callback", outcome="not_found").inc()
            raise NotFoundError("unknown app_user_id in correlation token")
        if len(matches) > 1:
            sso_handshakes_total.labels(service=self.service_name, step="callback", outcome="ambiguous").inc()
            raise ValidationError("correlation token matches more than one store")
        if len(candidates) > 1:
            logger.warning("recovered correlation token without separator store_id=%s", matches[0][1].id)
        return matches[0]

    async def complete_callback(
        self,
        issued_key_id: str,
        correlation_token: str,
        consumer_key: str,
        consumer_secret: str,
    ) -> CallbackResult:
        """Persist issued keys, then provision webhooks (non-fatal)."""

        progress = HandshakeProgress()
        progress.advance("AWAITING_CALLBACK")

        fields = {
            "key_id": issued_key_id,
            "user_id": correlation_token,
            "consumer_key": consumer_key,
            "consumer_secret": consumer_secret,
        }
        missing = [name for name, value in fields.items() if not str(value or "").strip()]
        if missing:
            sso_handshakes_total.labels(service=self.service_name, step="callback", outcome="invalid").inc()
            raise ValidationError(f"missing fields: {', '.join(missing)}")

        with tracer.start_as_current_span("sso.callback"):
            token, store = await self._resolve_token(correlation_token)
            store_id_ctx.set(str(store.id))

            store = await self.records.update_store(
                store.id,
                {
                    "store_url": clean_url(token.domain),
                    "consumer_key": consumer_key,
                    "consumer_secret": consumer_secret,
                    "woo_key_id": str(issued_key_id),
                },
            )
            progress.advance("CREDENTIALS_PERSISTED")
            logger.info("sso credentials persisted store_id=%s store_url=%s", store.id, store.store_url)

            report: ProvisioningReport | None = None
            try:
                report = await self.provisioner.provision(store)
            except Exception:
                logger.exception("webhook provisioning aborted store_id=%s", store.id)
            progress.advance("WEBHOOKS_PROVISIONED")

        result = CallbackResult(store=store, progress=progress, webhooks=report)
        sso_handshakes_total.labels(
            service=self.service_name, step="callback", outcome=f"webhooks_{result.webhook_status}"
        ).inc()
        logger.info("sso completed store_id=%s webhooks=%s", store.id, result.webhook_status)
        return result
