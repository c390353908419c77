"""Entry-function payloads built by the signing agent."""

from __future__ import annotations

import httpx
import pytest

from aptomizer.providers.panora import PanoraClient
from aptomizer.providers.token_list import TokenInfo
from aptomizer.services.agent import AMNIS_CONTRACT, AptosAgent, entry_function, to_on_chain
from aptomizer.providers.joule import JOULE_CONTRACT
from aptomizer.services.results import FetchError
from aptomizer.services.tokens import APT_COIN_TYPE, TokenList

USDC_FA = "0xbae207659db88bea0cbead6da0ed00aac12edcdda169e591cd41c94180b46f3b"
USDC = "0xf22bede237a07e121b56d91a491eb7bcdfd1f5907926a9e58338f964a01b17fa::asset::USDC"


class RecordingSubmitter:
    def __init__(self) -> None:
        self.payloads: list[dict] = []

    async def submit(self, payload: dict) -> str:
        self.payloads.append(payload)
        return f"0xhash{len(self.payloads)}"


class StubNode:
    async def native_balance(self, address: str) -> int:
        return 123_450_000

    async def coin_balance(self, address: str, coin_type: str) -> int:
        return 7_000_000


def _agent(panora: PanoraClient | None = None) -> tuple[AptosAgent, RecordingSubmitter]:
    submitter = RecordingSubmitter()
    tokens = TokenList(
        [TokenInfo(chain_id=1, token_address=USDC, name="USD Coin", symbol="USDC", decimals=6, fa_address=USDC_FA)]
    )
    agent = AptosAgent(
        "0xai",
        submitter,
        node=StubNode(),
        tokens=tokens,
        prices=None,
        joule=None,
        panora=panora,
    )
    return agent, submitter


def test_amount_conversion_truncates():
    assert to_on_chain(1.5, 8) == 150_000_000
    assert to_on_chain(0.1, 6) == 100_000
    assert to_on_chain(0.0000001, 6) == 0


def test_entry_function_stringifies_integers_only():
    payload = entry_function("0x1::m::f", [], [5, True, "0x1", []])
    assert payload["arguments"] == ["5", True, "0x1", []]
    assert payload["type"] == "entry_function_payload"


async def test_balances_are_decimal_adjusted():
    agent, _ = _agent()
    assert await agent.get_balance() == pytest.approx(1.2345)
    assert await agent.get_balance(USDC) == 7.0
    assert agent.is_fungible_asset(USDC_FA)
    assert not agent.is_fungible_asset(USDC)


async def test_transfers_pick_coin_or_fungible_asset_function():
    agent, submitter = _agent()
    await agent.transfer_tokens("0xbob", 100, APT_COIN_TYPE)
    await agent.transfer_tokens("0xbob", 100, USDC_FA)
    await agent.transfer_nft("0xbob", "0xnft")

    coin, fa, nft = submitter.payloads
    assert coin["function"] == "0x1::aptos_account::transfer_coins"
    assert coin["type_arguments"] == [APT_COIN_TYPE]
    assert coin["arguments"] == ["0xbob", "100"]
    assert fa["function"] == "0x1::primary_fungible_store::transfer"
    assert fa["arguments"] == [USDC_FA, "0xbob", "100"]
    assert nft["function"] == "0x1::object::transfer"
    assert nft["type_arguments"] == ["0x4::token::Token"]


async def test_staking_and_lending_payloads():
    agent, submitter = _agent()
    assert await agent.stake_with_amnis("0xai", 10) == "0xhash1"
    await agent.withdraw_stake_from_amnis("0xai", 10)
    await agent.lend_token(50, APT_COIN_TYPE, "1234", True, False)
    await agent.lend_token(50, USDC_FA, "1", False, True)
    await agent.borrow_token(5, APT_COIN_TYPE, "1", False)
    await agent.withdraw_token(5, USDC_FA, "1", True)
    await agent.repay_token(5, APT_COIN_TYPE, "1", False)
    await agent.claim_reward(APT_COIN_TYPE)

    functions = [payload["function"] for payload in submitter.payloads]
    assert functions == [
        f"{AMNIS_CONTRACT}::router::deposit_and_stake_entry",
        f"{AMNIS_CONTRACT}::router::unstake_entry",
        f"{JOULE_CONTRACT}::pool::lend",
        f"{JOULE_CONTRACT}::pool::lend_fa",
        f"{JOULE_CONTRACT}::pool::borrow",
        f"{JOULE_CONTRACT}::pool::withdraw_fa",
        f"{JOULE_CONTRACT}::pool::repay",
        f"{JOULE_CONTRACT}::pool::claim_rewards",
    ]
    assert submitter.payloads[2]["arguments"] == ["1234", "50", True]
    assert submitter.payloads[3]["arguments"] == ["1", USDC_FA, False, "50"]
    assert submitter.payloads[4]["arguments"] == ["1", "5", []]
    assert submitter.payloads[7]["type_arguments"] == [APT_COIN_TYPE]


async def test_panora_swap_submits_the_quoted_payload():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "quotes": [
                    {
                        "txData": {
                            "function": "0x1c3::panora_swap::router_entry",
                            "type_arguments": [APT_COIN_TYPE],
                            "arguments": ["1", "2"],
                        }
                    }
                ]
            },
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        panora = PanoraClient("https://panora.test", api_key="k", client=client)
        agent, submitter = _agent(panora)
        tx_hash = await agent.swap_with_panora(APT_COIN_TYPE, USDC_FA, 1.5)

    assert tx_hash == "0xhash1"
    assert submitter.payloads[0]["function"] == "0x1c3::panora_swap::router_entry"
    request = seen[0]
    assert request.method == "POST"
    assert request.headers["x-api-key"] == "k"
    assert request.url.params["toWalletAddress"] == "0xai"
    assert request.url.params["fromTokenAmount"] == "1.5"


async def test_panora_without_route_raises_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"quotes": []}))
    async with httpx.AsyncClient(transport=transport) as client:
        panora = PanoraClient("https://panora.test", api_key="", client=client)
        with pytest.raises(FetchError):
            await panora.swap_payload(APT_COIN_TYPE, USDC_FA, 1, "0xai")
