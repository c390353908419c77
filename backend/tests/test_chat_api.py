"""Chat endpoint streaming with a scripted completion client."""

from __future__ import annotations

from types import SimpleNamespace


def _text(content: str):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content, tool_calls=None))])


class ScriptedOpenAI:
    def __init__(self, *texts: str) -> None:
        self.texts = texts
        self.requests: list[dict] = []
        self.chat = SimpleNamespace(completions=self)

    async def create(self, **kwargs):
        self.requests.append(kwargs)

        async def _stream():
            for text in self.texts:
                yield _text(text)

        return _stream()


async def test_chat_requires_configured_model(make_client, stub_gateway):
    async with make_client(stub_gateway)() as client:
        response = await client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "hi"}], "userWalletAddress": "0xabc"}
        )
    assert response.status_code == 503
    assert response.json() == {"error": "Chat is not configured"}


async def test_chat_rejects_unknown_user_and_missing_wallet(make_client, stub_gateway):
    body = {"messages": [{"role": "user", "content": "hi"}], "userWalletAddress": "0xabc"}
    async with make_client(stub_gateway, openai_client=ScriptedOpenAI("unused"))() as client:
        unknown = await client.post("/api/chat", json=body)
        await client.post("/api/user/create", json={"walletAddress": "0xabc"})
        no_wallet = await client.post("/api/chat", json=body)
        empty = await client.post("/api/chat", json={"messages": [], "userWalletAddress": "0xabc"})

    assert unknown.status_code == 404
    assert no_wallet.status_code == 404
    assert no_wallet.json() == {"error": "AI wallet not found"}
    assert empty.status_code == 400


async def test_chat_streams_plain_text(make_client, stub_gateway):
    openai_client = ScriptedOpenAI("Your portfolio ", "looks healthy.")
    async with make_client(stub_gateway, openai_client=openai_client)() as client:
        user = (await client.post("/api/user/create", json={"walletAddress": "0xabc"})).json()["user"]
        await client.post("/api/user/generate-ai-wallet", json={"userId": user["id"]})
        response = await client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "How am I doing?"}], "userWalletAddress": "0xabc"},
        )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Your portfolio looks healthy."

    (request,) = openai_client.requests
    system, question = request["messages"]
    assert system["role"] == "system"
    assert "- Wallet address: 0xabc" in system["content"]
    assert question == {"role": "user", "content": "How am I doing?"}
    assert {tool["function"]["name"] for tool in request["tools"]} >= {"getPortfolio", "panoraSwap"}
