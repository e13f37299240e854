"""
Azure OpenAI Gateway Adapter.

Azure routes by deployment rather than by model: the deployment name is
part of the URL and the request body carries no ``model`` field. The
widget's model setting doubles as the deployment name.
"""

from typing import Any, Dict, List

from ..core.interface import AbstractAdapter
from ..models.request import ChatRequest, Provider, RawRequest


class AzureOpenAIAdapter(AbstractAdapter):
    """
    Azure OpenAI Service adapter.

    Settings:
        base_url: resource endpoint (e.g. https://myresource.openai.azure.com)
        model: default deployment name
        api_version: REST API version
        extra["deployment_map"]: optional model -> deployment mapping
    """

    API_VERSION = "2024-02-15-preview"
    CONTENT_PATH = ("choices", 0, "message", "content")
    DEFAULT_MODEL = "gpt-35-turbo"
    REQUIRES_BASE_URL = True

    @property
    def provider(self) -> Provider:
        return Provider.AZURE

    def _get_deployment(self, model: str) -> str:
        """Get Azure deployment name for a model."""
        deployment_map = self._settings.extra.get("deployment_map") or {}
        if model in deployment_map:
            return deployment_map[model]
        # Deployment names cannot contain dots
        return model.replace(".", "-")

    def _build_url(self, deployment: str) -> str:
        endpoint = self._settings.base_url.rstrip("/")
        return f"{endpoint}/openai/deployments/{deployment}/chat/completions"

    def build_request(self, request: ChatRequest) -> RawRequest:
        deployment = self._get_deployment(self.resolve_model(request))

        return RawRequest(
            method="POST",
            url=self._build_url(deployment),
            model=deployment,
            json={
                "messages": self._messages(request, request.system_prompt),
                "max_tokens": self._gateway_settings.max_tokens,
                "temperature": self._gateway_settings.temperature,
            },
            headers={
                "Content-Type": "application/json",
                "api-key": self._settings.api_key,
            },
            params={"api-version": self._settings.api_version or self.API_VERSION},
            secrets=self.secrets(),
        )

    def list_models(self) -> List[Dict[str, Any]]:
        """List the configured deployments."""
        default = self._get_deployment(self._settings.model or self.DEFAULT_MODEL)
        deployments = {default}
        deployments.update((self._settings.extra.get("deployment_map") or {}).values())
        return [
            {"id": d, "object": "deployment", "owner": "azure", "default": d == default}
            for d in sorted(deployments)
        ]
