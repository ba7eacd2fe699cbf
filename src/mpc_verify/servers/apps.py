"""
Signature Verification Server - FastAPI wrapper.

Exposes the verification engine over HTTP for signing UIs that cannot run
the chain libraries themselves.

Routes:
    POST /verify                    VerificationRequest JSON -> VerificationOutcome JSON
    GET  /supported-types           Chain ids per signing operation
    GET  /organization/public-key   Organization public key (lazily fetched)
"""

import json
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..chains.constants import family_for_chain, supported_sign_types
from ..clients.organization import OrganizationKeyProvider
from ..config import Settings, load_settings
from ..engine.dispatcher import verify
from ..engine.exceptions import ConfigurationError, CustodyAPIError
from ..schemas.bases import EncodingHint, VerificationRequest
from ..utils import logger, setup_logger
from ..verifiers.registry import VerifierRegistry


def parse_verify_body(payload: Dict[str, Any]) -> VerificationRequest:
    """
    Build a ``VerificationRequest`` from a ``POST /verify`` body.

    Besides the plain request fields, the body may name the chain by custody
    id (``chainId``) instead of ``chainFamily``, and may carry the custody
    API's sign response verbatim under ``signResult`` instead of
    ``signatureMaterial``.

    Raises:
        KeyError: If ``chainId`` is unknown.
        ValidationError: If the remaining fields are invalid.
    """
    body = dict(payload)
    chain_id = body.pop("chainId", None)
    if chain_id and not body.get("chainFamily"):
        body["chainFamily"] = family_for_chain(chain_id).value

    sign_result = body.pop("signResult", None)
    if isinstance(sign_result, dict):
        return VerificationRequest.from_sign_result(
            body.get("chainFamily"),
            body.get("operationType"),
            sign_result,
            raw_message=body.get("rawMessage", ""),
            expected_identity=body.get("expectedIdentity", ""),
            message_is_hex_encoded=bool(body.get("messageIsHexEncoded", False)),
            signature_encoding=body.get("signatureEncoding", EncodingHint.AUTO),
        )
    return VerificationRequest.model_validate(body)


class VerificationServer(FastAPI):
    """FastAPI server exposing multi-chain signature verification."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[VerifierRegistry] = None,
        key_provider: Optional[OrganizationKeyProvider] = None,
        **fastapi_kwargs
    ):
        """Initialize the verification server.

        Args:
            settings: Custody API configuration (default: ``load_settings()``)
            registry: Verifier lookup table (default: shared registry)
            key_provider: Organization key provider (default: built from settings)
            **fastapi_kwargs: FastAPI arguments (title, version, etc.)
        """
        self.settings = settings if settings is not None else load_settings()
        setup_logger(self.settings.log_level)
        self.registry = registry
        self.key_provider = key_provider if key_provider is not None else OrganizationKeyProvider(self.settings)

        super().__init__(**fastapi_kwargs)

        self._setup_verify_endpoint()
        self._setup_config_endpoints()

    def _setup_verify_endpoint(self, path: str = "/verify") -> None:
        """Setup the verification endpoint.

        Args:
            path: Endpoint path (default: /verify)
        """
        @self.post(path)
        async def verify_signature(request: Request):
            """Verify a custody signature and return the outcome."""
            try:
                payload = await request.json()
            except ValueError:
                return JSONResponse(status_code=400, content={"error": "Request body must be JSON"})
            if not isinstance(payload, dict):
                return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})

            try:
                verification_request = parse_verify_body(payload)
            except KeyError as exc:
                return JSONResponse(status_code=400, content={"error": str(exc.args[0])})
            except (ValidationError, ValueError) as exc:
                details = json.loads(exc.json()) if isinstance(exc, ValidationError) else str(exc)
                return JSONResponse(status_code=422, content={"error": "Invalid verification request", "details": details})

            outcome = await run_in_threadpool(verify, verification_request, self.registry)
            return JSONResponse(status_code=200, content=outcome.model_dump(mode="json", by_alias=True))

    def _setup_config_endpoints(self) -> None:
        """Setup read-only configuration endpoints."""
        @self.get("/supported-types")
        async def supported_types():
            """Chain ids per signing operation."""
            return supported_sign_types()

        @self.get("/organization/public-key")
        async def organization_public_key():
            """Organization public key from configuration or the custody API."""
            try:
                public_key = await self.key_provider.get()
            except ConfigurationError as exc:
                return JSONResponse(status_code=503, content={"error": str(exc)})
            except CustodyAPIError as exc:
                logger.error(f"Organization public key lookup failed: {exc}")
                return JSONResponse(status_code=502, content={"error": str(exc)})
            return {"publicKey": public_key}
