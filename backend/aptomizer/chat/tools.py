"""Tools the chat model may call, with validated arguments.

Every tool declares a pydantic model for its arguments; the model's JSON
schema is advertised to the LLM and incoming arguments are validated
against it. The calling user and their AI wallet come from
:class:`ToolContext`, never from model-supplied arguments.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Optional

import httpx
from aptos_sdk.async_client import ApiError
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_core import to_jsonable_python

from aptomizer.providers.aptos_node import APT_COIN_TYPE, AptosNodeError
from aptomizer.schemas.portfolio import PortfolioResponse
from aptomizer.services.agent import AptosAgent, to_on_chain
from aptomizer.services.formatting import format_currency, truncate_address
from aptomizer.services.portfolio import PortfolioSnapshot
from aptomizer.services.results import FetchError
from aptomizer.services.yield_opportunities import YieldQuery, rank_yield_opportunities

logger = logging.getLogger(__name__)

ToolResult = dict[str, Any]

# Failures a tool reports back to the model instead of aborting the chat.
RECOVERABLE_ERRORS = (FetchError, AptosNodeError, ApiError, httpx.HTTPError, LookupError, ValueError)


class ToolError(Exception):
    user_message = "An unknown error occurred."


class UnknownToolError(ToolError):
    user_message = "The model tried to call a unknown tool."


class InvalidToolArgumentsError(ToolError):
    user_message = "The model called a tool with invalid arguments."


class ToolExecutionError(ToolError):
    user_message = "An error occurred during tool execution."


@dataclass
class ToolContext:
    """Per-request identity and services available to tool handlers."""

    user_id: str
    wallet_address: str
    ai_wallet_address: str
    agent_factory: Callable[[], Awaitable[AptosAgent]]
    portfolio_loader: Callable[[], Awaitable[PortfolioSnapshot]]
    risk_tolerance: Optional[int] = None
    _agent: Optional[AptosAgent] = field(default=None, init=False, repr=False)

    async def agent(self) -> AptosAgent:
        if self._agent is None:
            self._agent = await self.agent_factory()
        return self._agent


Handler = Callable[[ToolContext, Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    parameters: type[BaseModel]
    handler: Handler

    def schema(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.model_json_schema(),
            },
        }


def success(**payload: Any) -> ToolResult:
    return {"status": "success", **to_jsonable_python(payload)}


def failure(exc: Exception) -> ToolResult:
    return {
        "status": "error",
        "message": str(exc) or "Unknown error occurred",
        "code": getattr(exc, "code", None) or "UNKNOWN_ERROR",
    }


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def register(self, name: str, description: str, parameters: type[BaseModel]) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self._tools[name] = Tool(name, description, parameters, handler)
            return handler

        return decorator

    def schemas(self) -> list[dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    def parse_arguments(self, name: str, raw_arguments: str | dict[str, Any] | None) -> BaseModel:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        try:
            data = json.loads(raw_arguments or "{}") if not isinstance(raw_arguments, dict) else raw_arguments
            return tool.parameters.model_validate(data)
        except (ValueError, ValidationError) as exc:
            raise InvalidToolArgumentsError(f"{name}: {exc}") from exc

    async def execute(self, name: str, raw_arguments: str | dict[str, Any] | None, context: ToolContext) -> ToolResult:
        arguments = self.parse_arguments(name, raw_arguments)
        try:
            return await self._tools[name].handler(context, arguments)
        except RECOVERABLE_ERRORS as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return failure(exc)
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", name)
            raise ToolExecutionError(name) from exc


registry = ToolRegistry()


class ToolArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NoArguments(ToolArguments):
    pass


class MintArguments(ToolArguments):
    mint: str = Field(..., description='Token address, eg "0x1::aptos_coin::AptosCoin"')


class BalanceArguments(ToolArguments):
    mint: Optional[str] = Field(default=None, description="Token to check; APT when omitted")


class TokenPriceArguments(ToolArguments):
    token: str = Field(..., description="Token symbol, eg usdt, btc")


class TransactionArguments(ToolArguments):
    transaction_hash: str = Field(..., alias="transactionHash")


class TransferTokenArguments(ToolArguments):
    mint: str = Field(..., description="Coin type or fungible asset address to transfer")
    amount: float = Field(..., gt=0, description="Human-readable amount")
    to: Optional[str] = Field(default=None, description="Recipient; the AI wallet itself when omitted")


class TransferNftArguments(ToolArguments):
    mint: str = Field(..., description="Object address of the NFT")
    to: str


class StakeArguments(ToolArguments):
    amount: float = Field(..., gt=0)
    recipient: Optional[str] = None


class SwapArguments(ToolArguments):
    from_token: str = Field(..., alias="fromToken")
    to_token: str = Field(..., alias="toToken")
    amount: float = Field(..., gt=0)
    to_wallet_address: Optional[str] = Field(default=None, alias="toWalletAddress")


class LendArguments(ToolArguments):
    amount: float = Field(..., gt=0)
    mint: str
    position_id: str = Field(default="1234", alias="positionId")
    new_position: bool = Field(default=True, alias="newPosition")


class PositionAmountArguments(ToolArguments):
    amount: float = Field(..., gt=0)
    mint: str
    position_id: str = Field(..., alias="positionId")


class RepayArguments(PositionAmountArguments):
    fungible_asset_address: Optional[str] = Field(default=None, alias="fungibleAssetAddress")


class ClaimRewardArguments(ToolArguments):
    reward_coin_type: str = Field(..., alias="rewardCoinType")


class PositionArguments(ToolArguments):
    position_id: str = Field(..., alias="positionId")


class YieldArguments(ToolArguments):
    risk_tolerance: Optional[int] = Field(default=None, ge=1, le=10, alias="riskTolerance")
    time_horizon: Literal["Short", "Medium", "Long"] = Field(default="Medium", alias="timeHorizon")
    min_apy: float = Field(default=0.0, alias="minAPY")
    preferred_assets: list[str] = Field(default_factory=list, alias="preferredAssets")


def _token_summary(agent: AptosAgent, mint: str) -> dict[str, Any]:
    token = agent.get_token_details(mint)
    return {"name": token.name, "decimals": token.decimals}


@registry.register("getBalance", "Get the balance of the user's AI wallet", BalanceArguments)
async def get_balance(context: ToolContext, args: BalanceArguments) -> ToolResult:
    agent = await context.agent()
    mint = args.mint or APT_COIN_TYPE
    balance = await agent.get_balance(mint)
    token = agent.get_token_details(mint)
    return success(balance=balance, token={"name": token.symbol, "decimals": token.decimals})


@registry.register(
    "getTokenDetails",
    "Get the details of any Aptos token, including decimals for converting on-chain values",
    MintArguments,
)
async def get_token_details(context: ToolContext, args: MintArguments) -> ToolResult:
    agent = await context.agent()
    return success(tokenData=agent.get_token_details(args.mint))


@registry.register(
    "getTokenPrice",
    "Get the live USD price of a token by symbol; no decimal conversion is needed",
    TokenPriceArguments,
)
async def get_token_price(context: ToolContext, args: TokenPriceArguments) -> ToolResult:
    agent = await context.agent()
    price = await agent.get_token_price(args.token)
    return success(tokenData={"symbol": args.token.upper(), "price": price})


@registry.register("getTransaction", "Fetch a transaction from the Aptos blockchain", TransactionArguments)
async def get_transaction(context: ToolContext, args: TransactionArguments) -> ToolResult:
    agent = await context.agent()
    return success(transaction=await agent.get_transaction(args.transaction_hash))


@registry.register(
    "transferToken",
    "Transfer APT, a coin or a fungible asset. Use 0x1::aptos_coin::AptosCoin as mint for APT. "
    "Leave `to` empty to send to the AI wallet itself.",
    TransferTokenArguments,
)
async def transfer_token(context: ToolContext, args: TransferTokenArguments) -> ToolResult:
    agent = await context.agent()
    token = agent.get_token_details(args.mint)
    tx_hash = await agent.transfer_tokens(
        args.to or agent.address, to_on_chain(args.amount, token.decimals), args.mint
    )
    return success(transferTokenTransactionHash=tx_hash, token={"name": token.name, "decimals": token.decimals})


@registry.register("transferNFT", "Transfer an NFT on Aptos to a recipient", TransferNftArguments)
async def transfer_nft(context: ToolContext, args: TransferNftArguments) -> ToolResult:
    agent = await context.agent()
    tx_hash = await agent.transfer_nft(args.to, args.mint)
    return success(transfer=tx_hash, nft=args.mint)


@registry.register(
    "amnisStake",
    "Stake APT with Amnis and receive stAPT. Leave recipient empty to keep stAPT in the AI wallet.",
    StakeArguments,
)
async def amnis_stake(context: ToolContext, args: StakeArguments) -> ToolResult:
    agent = await context.agent()
    tx_hash = await agent.stake_with_amnis(args.recipient or agent.address, to_on_chain(args.amount, 8))
    return success(stakeTransactionHash=tx_hash, token={"name": "stAPT", "decimals": 8})


@registry.register(
    "amnisWithdrawStake",
    "Withdraw staked APT from Amnis back to APT. Leave recipient empty to receive in the AI wallet.",
    StakeArguments,
)
async def amnis_withdraw_stake(context: ToolContext, args: StakeArguments) -> ToolResult:
    agent = await context.agent()
    tx_hash = await agent.withdraw_stake_from_amnis(args.recipient or agent.address, to_on_chain(args.amount, 8))
    return success(withdrawStakeTransactionHash=tx_hash, token={"name": "stAPT", "decimals": 8})


@registry.register(
    "panoraSwap",
    "Swap tokens through the Panora aggregator. Use 0x1::aptos_coin::AptosCoin for APT.",
    SwapArguments,
)
async def panora_swap(context: ToolContext, args: SwapArguments) -> ToolResult:
    agent = await context.agent()
    tx_hash = await agent.swap_with_panora(args.from_token, args.to_token, args.amount, args.to_wallet_address)
    source = _token_summary(agent, args.from_token)
    target = _token_summary(agent, args.to_token)
    return success(
        swapTransactionHash=tx_hash,
        token=[
            {"mintX": source["name"], "decimals": source["decimals"]},
            {"mintY": target["name"], "decimals": target["decimals"]},
        ],
    )


@registry.register(
    "jouleLendToken",
    "Lend APT, a coin or a fungible asset into a Joule position. Without a positionId use 1234 and newPosition=true.",
    LendArguments,
)
async def joule_lend(context: ToolContext, args: LendArguments) -> ToolResult:
    agent = await context.agent()
    token = agent.get_token_details(args.mint)
    tx_hash = await agent.lend_token(
        to_on_chain(args.amount, token.decimals),
        args.mint,
        args.position_id,
        args.new_position,
        agent.is_fungible_asset(args.mint),
    )
    return success(lendTokenTransactionHash=tx_hash, token={"name": token.name, "decimals": token.decimals})


@registry.register("jouleBorrowToken", "Borrow APT, a coin or a fungible asset from a Joule position", PositionAmountArguments)
async def joule_borrow(context: ToolContext, args: PositionAmountArguments) -> ToolResult:
    agent = await context.agent()
    token = agent.get_token_details(args.mint)
    tx_hash = await agent.borrow_token(
        to_on_chain(args.amount, token.decimals), args.mint, args.position_id, agent.is_fungible_asset(args.mint)
    )
    return success(borrowTokenTransactionHash=tx_hash, token={"name": token.name, "decimals": token.decimals})


@registry.register("jouleRepayToken", "Repay borrowed APT, a coin or a fungible asset to a Joule position", RepayArguments)
async def joule_repay(context: ToolContext, args: RepayArguments) -> ToolResult:
    agent = await context.agent()
    token = agent.get_token_details(args.mint)
    tx_hash = await agent.repay_token(
        to_on_chain(args.amount, token.decimals), args.mint, args.position_id, bool(args.fungible_asset_address)
    )
    return success(repayTokenTransactionHash=tx_hash, token={"name": token.name, "decimals": token.decimals})


@registry.register(
    "jouleWithdrawToken", "Withdraw lent APT, a coin or a fungible asset from a Joule position", PositionAmountArguments
)
async def joule_withdraw(context: ToolContext, args: PositionAmountArguments) -> ToolResult:
    agent = await context.agent()
    token = agent.get_token_details(args.mint)
    tx_hash = await agent.withdraw_token(
        to_on_chain(args.amount, token.decimals), args.mint, args.position_id, agent.is_fungible_asset(args.mint)
    )
    return success(withdrawTokenTransactionHash=tx_hash, token={"name": token.name, "decimals": token.decimals})


@registry.register("jouleClaimReward", "Claim APT or amAPT incentive rewards from Joule pools", ClaimRewardArguments)
async def joule_claim_reward(context: ToolContext, args: ClaimRewardArguments) -> ToolResult:
    agent = await context.agent()
    tx_hash = await agent.claim_reward(args.reward_coin_type)
    token = agent.get_token_details(args.reward_coin_type)
    return success(
        claimRewardsTransactionHash=tx_hash,
        reward={"coinType": args.reward_coin_type, "name": token.name, "decimals": token.decimals},
    )


@registry.register("jouleGetPoolDetails", "Get the Joule pool details for a token or fungible asset", MintArguments)
async def joule_pool_details(context: ToolContext, args: MintArguments) -> ToolResult:
    agent = await context.agent()
    return success(pool=await agent.get_pool_details(args.mint))


@registry.register("jouleGetAllPools", "List every Joule lending pool", NoArguments)
async def joule_all_pools(context: ToolContext, args: NoArguments) -> ToolResult:
    agent = await context.agent()
    return success(pools=await agent.get_all_pools())


@registry.register(
    "jouleGetUserPosition",
    "Get one of the user's Joule positions. Ask for the positionId; never invent one.",
    PositionArguments,
)
async def joule_user_position(context: ToolContext, args: PositionArguments) -> ToolResult:
    agent = await context.agent()
    return success(jouleUserPosition=await agent.get_user_position(args.position_id))


@registry.register("jouleGetUserAllPositions", "Get all of the user's Joule positions", NoArguments)
async def joule_user_all_positions(context: ToolContext, args: NoArguments) -> ToolResult:
    agent = await context.agent()
    return success(jouleUserAllPositions=await agent.get_user_all_positions())


@registry.register(
    "jouleYieldOpportunities",
    "Find the best Joule yield opportunities for the user's risk profile",
    YieldArguments,
)
async def joule_yield_opportunities(context: ToolContext, args: YieldArguments) -> ToolResult:
    agent = await context.agent()
    query = YieldQuery(
        risk_tolerance=args.risk_tolerance or context.risk_tolerance or 5,
        time_horizon=args.time_horizon,
        min_apy=args.min_apy,
        preferred_assets=tuple(args.preferred_assets),
    )
    opportunities = rank_yield_opportunities(await agent.get_all_pools(), query)
    return success(
        opportunities=[
            {
                "asset": {
                    "name": opportunity.name,
                    "symbol": opportunity.symbol,
                    "type": opportunity.asset_type,
                    "logoUrl": opportunity.logo_url,
                },
                "depositAPY": opportunity.deposit_apy,
                "utilizationRate": opportunity.utilization_rate,
                "riskLevel": opportunity.risk_level,
                "recommendationScore": opportunity.recommendation_score,
                "liquidity": opportunity.liquidity,
                "ltv": opportunity.ltv,
            }
            for opportunity in opportunities
        ],
        riskProfileApplied={
            "riskTolerance": query.risk_tolerance,
            "timeHorizon": query.time_horizon,
            "minAPY": query.min_apy,
            "preferredAssets": list(query.preferred_assets),
        },
    )


@registry.register(
    "getPortfolio",
    "Get the user's portfolio: assets, strategies, lending positions and portfolio metrics",
    NoArguments,
)
async def get_portfolio(context: ToolContext, args: NoArguments) -> ToolResult:
    snapshot = await context.portfolio_loader()
    summary = (
        f"AI wallet {truncate_address(snapshot.ai_wallet_address)} holds ${format_currency(snapshot.total_value)}"
        f" across {len(snapshot.assets)} assets; net lending positions ${format_currency(snapshot.net_position_value)}"
    )
    return success(
        summary=summary,
        portfolio=PortfolioResponse.from_snapshot(snapshot).model_dump(by_alias=True),
    )


__all__ = [
    "InvalidToolArgumentsError",
    "Tool",
    "ToolContext",
    "ToolError",
    "ToolExecutionError",
    "ToolRegistry",
    "UnknownToolError",
    "failure",
    "registry",
    "success",
]
