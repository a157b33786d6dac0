"""
Tests for the ElevenLabs and Resend providers
HTTP exchanges are served by httpx.MockTransport
"""
import json

import httpx
import pytest

from cea_dashboard.domain.errors import AgentProvisioningError, NotificationError
from cea_dashboard.infrastructure.agents.elevenlabs import ElevenLabsAgentProvider
from cea_dashboard.infrastructure.email.resend import ResendEmailProvider


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestElevenLabsAgentProvider:

    @pytest.mark.asyncio
    async def test_create_agent(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["xi-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"agent_id": "agent-123"})

        provider = ElevenLabsAgentProvider("xi-key", client=client_for(handler))

        agent_id = await provider.create_agent({"name": "Agente CEA - ventas"})

        assert agent_id == "agent-123"
        assert seen["url"] == "https://api.elevenlabs.io/v1/convai/agents/create"
        assert seen["key"] == "xi-key"
        assert seen["body"] == {"name": "Agente CEA - ventas"}

    @pytest.mark.asyncio
    async def test_create_agent_without_id(self):
        provider = ElevenLabsAgentProvider(
            "xi-key", client=client_for(lambda request: httpx.Response(200, json={}))
        )

        with pytest.raises(AgentProvisioningError, match="no agent_id"):
            await provider.create_agent({})

    @pytest.mark.asyncio
    async def test_rejected_request(self):
        provider = ElevenLabsAgentProvider(
            "xi-key", client=client_for(lambda request: httpx.Response(422, json={"detail": "bad"}))
        )

        with pytest.raises(AgentProvisioningError, match="422"):
            await provider.create_agent({})

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = ElevenLabsAgentProvider("xi-key", client=client_for(handler))

        with pytest.raises(AgentProvisioningError, match="timed out"):
            await provider.get_agent("agent-123")

    @pytest.mark.asyncio
    async def test_update_uses_patch(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(200, json={})

        provider = ElevenLabsAgentProvider("xi-key", client=client_for(handler))

        await provider.update_agent("agent-123", {"name": "x"})

        assert seen == {"method": "PATCH", "path": "/v1/convai/agents/agent-123"}

    @pytest.mark.asyncio
    async def test_signed_link(self):
        provider = ElevenLabsAgentProvider(
            "xi-key",
            client=client_for(lambda request: httpx.Response(200, json={"url": "wss://signed/agent-123"})),
        )

        assert await provider.get_agent_link("agent-123") == "wss://signed/agent-123"

    @pytest.mark.asyncio
    async def test_link_falls_back_to_public_page(self):
        provider = ElevenLabsAgentProvider(
            "xi-key", client=client_for(lambda request: httpx.Response(403, text="forbidden"))
        )

        link = await provider.get_agent_link("agent-123")

        assert link == "https://elevenlabs.io/app/conversational-ai/agent-123"

    @pytest.mark.asyncio
    async def test_test_agent_reports_missing_agent(self):
        provider = ElevenLabsAgentProvider(
            "xi-key", client=client_for(lambda request: httpx.Response(404, json={}))
        )

        with pytest.raises(AgentProvisioningError):
            await provider.test_agent("missing")

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            ElevenLabsAgentProvider("")


class TestResendEmailProvider:

    @pytest.mark.asyncio
    async def test_send(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "re_123"})

        provider = ResendEmailProvider("re-key", "cea@cea.gob.mx", client=client_for(handler))

        sent = await provider.send(
            to=["juan.perez@cea.gob.mx"],
            subject="Entrevista",
            html="<p>Hola</p>",
            cc=["edc@provivienda.mx"],
            text="Hola",
        )

        assert sent.message_id == "re_123"
        assert sent.provider == "resend"
        assert seen["auth"] == "Bearer re-key"
        assert seen["body"] == {
            "from": "cea@cea.gob.mx",
            "to": ["juan.perez@cea.gob.mx"],
            "subject": "Entrevista",
            "html": "<p>Hola</p>",
            "cc": ["edc@provivienda.mx"],
            "text": "Hola",
        }

    @pytest.mark.asyncio
    async def test_omits_empty_cc(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "re_1"})

        provider = ResendEmailProvider("re-key", "cea@cea.gob.mx", client=client_for(handler))

        await provider.send(to=["a@cea.gob.mx"], subject="s", html="h")

        assert "cc" not in seen["body"]
        assert "text" not in seen["body"]

    @pytest.mark.asyncio
    async def test_rejected(self):
        provider = ResendEmailProvider(
            "re-key",
            "cea@cea.gob.mx",
            client=client_for(lambda request: httpx.Response(403, json={"message": "domain not verified"})),
        )

        with pytest.raises(NotificationError, match="domain not verified"):
            await provider.send(to=["a@cea.gob.mx"], subject="s", html="h")

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = ResendEmailProvider("re-key", "cea@cea.gob.mx", client=client_for(handler))

        with pytest.raises(NotificationError, match="unreachable"):
            await provider.send(to=["a@cea.gob.mx"], subject="s", html="h")

    @pytest.mark.asyncio
    async def test_missing_message_id(self):
        provider = ResendEmailProvider(
            "re-key", "cea@cea.gob.mx", client=client_for(lambda request: httpx.Response(200, json={}))
        )

        with pytest.raises(NotificationError):
            await provider.send(to=["a@cea.gob.mx"], subject="s", html="h")
