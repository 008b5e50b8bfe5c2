"""Swap pair registry.

Parses the configured swap pairs into immutable records keyed by the chain A
(ERC20) token address. A malformed pair stops startup with ConfigError;
nothing is defaulted.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from eth_typing import ChecksumAddress
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from chainswap.errors import ConfigError
from chainswap.utils.hexutil import parse_address

logger = logging.getLogger(__name__)

_UNSIGNED_RE = re.compile(r"^[0-9]+$")


class SwapPairConfig(BaseModel):
    """One swap pair as written in configuration.

    Bounds are decimal strings so amounts beyond 64 bits survive JSON and
    environment round trips. Token addresses may also be given under the
    erc20_addr/bep20_addr keys.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    symbol: str
    name: str
    decimals: int = Field(ge=0, le=255)
    low_bound: str
    upper_bound: str
    source_token_address: str = Field(
        validation_alias=AliasChoices("source_token_address", "erc20_addr"),
    )
    destination_token_address: str = Field(
        validation_alias=AliasChoices("destination_token_address", "bep20_addr"),
    )


@dataclass(frozen=True)
class SwapPairRecord:
    """A validated swap pair.

    Attributes:
        symbol: Token symbol
        name: Token name
        decimals: Token decimals (0-255)
        low_bound: Minimum swap amount in base units
        upper_bound: Maximum swap amount in base units
        source_token_address: Token on chain A (registry key)
        destination_token_address: Paired token on chain B
    """
    symbol: str
    name: str
    decimals: int
    low_bound: int
    upper_bound: int
    source_token_address: ChecksumAddress
    destination_token_address: ChecksumAddress

    def accepts(self, amount: int) -> bool:
        """Check whether an amount is within the pair's bounds (inclusive)."""
        return self.low_bound <= amount <= self.upper_bound


def parse_amount(value: Any, field: str, symbol: str) -> int:
    """Parse a base-10 unsigned integer of arbitrary size.

    Raises:
        ConfigError: If the value is not a string of decimal digits
    """
    text = value.strip() if isinstance(value, str) else value
    if not isinstance(text, str) or not _UNSIGNED_RE.match(text):
        raise ConfigError(
            f"invalid {field} amount for {symbol}: {value!r}",
            operation="build_swap_pair_registry",
        )
    return int(text)


def _parse_token_address(value: str, field: str, symbol: str) -> ChecksumAddress:
    try:
        return parse_address(value)
    except ValueError as e:
        raise ConfigError(
            f"invalid {field} for {symbol}: {value!r}",
            operation="build_swap_pair_registry",
            cause=e,
        ) from e


def _parse_pair(pair: Union[SwapPairConfig, Mapping[str, Any]]) -> SwapPairRecord:
    if not isinstance(pair, SwapPairConfig):
        try:
            pair = SwapPairConfig.model_validate(dict(pair))
        except (TypeError, ValueError, ValidationError) as e:
            raise ConfigError(
                f"invalid swap pair config: {e}",
                operation="build_swap_pair_registry",
                cause=e,
            ) from e

    low_bound = parse_amount(pair.low_bound, "lowBound", pair.symbol)
    upper_bound = parse_amount(pair.upper_bound, "upperBound", pair.symbol)
    if low_bound > upper_bound:
        raise ConfigError(
            f"lowBound {low_bound} exceeds upperBound {upper_bound} for {pair.symbol}",
            operation="build_swap_pair_registry",
        )

    return SwapPairRecord(
        symbol=pair.symbol,
        name=pair.name,
        decimals=pair.decimals,
        low_bound=low_bound,
        upper_bound=upper_bound,
        source_token_address=_parse_token_address(
            pair.source_token_address, "source token address", pair.symbol
        ),
        destination_token_address=_parse_token_address(
            pair.destination_token_address, "destination token address", pair.symbol
        ),
    )


def build_swap_pair_registry(
    pairs: Iterable[Union[SwapPairConfig, Mapping[str, Any]]],
) -> dict[ChecksumAddress, SwapPairRecord]:
    """Build the swap pair registry from configuration.

    Duplicate source token addresses are not an error: the last entry wins.

    Args:
        pairs: Raw pair mappings or SwapPairConfig instances

    Returns:
        Mapping of chain A token address to SwapPairRecord

    Raises:
        ConfigError: If any pair is malformed; no partial registry is returned
    """
    registry: dict[ChecksumAddress, SwapPairRecord] = {}

    for pair in pairs:
        record = _parse_pair(pair)

        if record.source_token_address in registry:
            logger.debug(
                f"Swap pair {record.symbol} replaces earlier entry for {record.source_token_address}"
            )
        registry[record.source_token_address] = record

        logger.info(
            f"Load swap pair, symbol {record.symbol}, name {record.name}, "
            f"bep20 address {record.destination_token_address}, "
            f"erc20 address {record.source_token_address}"
        )

    return registry
