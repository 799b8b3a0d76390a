# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Closed set of capability kinds a component may declare.

Composition tokens map onto kinds through `kind_from_token`; anything else
becomes `CapabilityKind.UNSUPPORTED` so the parser can report it without
aborting. Note the historical naming: the `Config` token requests the
genesis-configuration surface, while `CapabilityKind.CONFIG` is the
configuration-binding trait (`trait Config`) and has no token.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class CapabilityKind(Enum):
	PALLET = "Pallet"
	CALL = "Call"
	EVENT = "Event"
	STORAGE = "Storage"
	CONFIG = "Config"
	ORIGIN = "Origin"
	INHERENT = "Inherent"
	VALIDATE_UNSIGNED = "ValidateUnsigned"
	GENESIS_CONFIG = "GenesisConfig"
	UNSUPPORTED = "Unsupported"


@dataclass(frozen=True)
class KindInfo:
	token: str
	# Name of the type the component exports for this capability, if any.
	type_name: Optional[str]
	item_kind: str
	may_be_generic: bool
	# Places in the generated glue that name the component's type. Each one is
	# a separate reference and therefore a separate resolution failure.
	use_sites: Tuple[str, ...] = ()
	# The exported type is always parameterized by the runtime.
	always_generic: bool = False


KIND_INFO: Dict[CapabilityKind, KindInfo] = {
	CapabilityKind.PALLET: KindInfo("Pallet", "Pallet", "struct", False, ("the `{entry}` type alias",), True),
	CapabilityKind.CALL: KindInfo(
		"Call",
		"Call",
		"enum",
		False,
		("the `{entry}` variant of the aggregate `Call`", "dispatching the aggregate `Call`"),
		True,
	),
	CapabilityKind.EVENT: KindInfo(
		"Event",
		"Event",
		"enum",
		True,
		("the `{entry}` variant of the aggregate `Event`", "the conversion from `{path}::Event` into the aggregate `Event`"),
	),
	CapabilityKind.STORAGE: KindInfo("Storage", None, "struct", False),
	CapabilityKind.CONFIG: KindInfo("Config", None, "trait", False),
	CapabilityKind.ORIGIN: KindInfo(
		"Origin",
		"Origin",
		"enum",
		True,
		("the `{entry}` variant of `OriginCaller`", "the conversion from `{path}::Origin` into `OriginCaller`"),
	),
	CapabilityKind.INHERENT: KindInfo("Inherent", None, "struct", False),
	CapabilityKind.VALIDATE_UNSIGNED: KindInfo("ValidateUnsigned", None, "struct", False),
	CapabilityKind.GENESIS_CONFIG: KindInfo(
		"Config",
		"GenesisConfig",
		"struct",
		True,
		("the `{entry}` field of the aggregate `GenesisConfig`", "building the aggregate `GenesisConfig`"),
	),
	CapabilityKind.UNSUPPORTED: KindInfo("", None, "struct", False),
}

_TOKENS: Dict[str, CapabilityKind] = {
	"Pallet": CapabilityKind.PALLET,
	"Module": CapabilityKind.PALLET,
	"Call": CapabilityKind.CALL,
	"Event": CapabilityKind.EVENT,
	"Storage": CapabilityKind.STORAGE,
	"Config": CapabilityKind.GENESIS_CONFIG,
	"GenesisConfig": CapabilityKind.GENESIS_CONFIG,
	"Origin": CapabilityKind.ORIGIN,
	"Inherent": CapabilityKind.INHERENT,
	"ValidateUnsigned": CapabilityKind.VALIDATE_UNSIGNED,
}

# Tokens listed in "unexpected part" diagnostics, in the order users read them.
SUPPORTED_TOKENS: Tuple[str, ...] = ("Pallet", "Call", "Storage", "Event", "Config", "Origin", "Inherent", "ValidateUnsigned")

# Order in which the code generator emits aggregate types.
GENERATED_ORDER: Tuple[CapabilityKind, ...] = (
	CapabilityKind.CALL,
	CapabilityKind.EVENT,
	CapabilityKind.ORIGIN,
	CapabilityKind.STORAGE,
	CapabilityKind.GENESIS_CONFIG,
)


def kind_from_token(token: str) -> CapabilityKind:
	return _TOKENS.get(token, CapabilityKind.UNSUPPORTED)


def kind_info(kind: CapabilityKind) -> KindInfo:
	return KIND_INFO[kind]


__all__ = [
	"CapabilityKind",
	"KindInfo",
	"KIND_INFO",
	"SUPPORTED_TOKENS",
	"GENERATED_ORDER",
	"kind_from_token",
	"kind_info",
]
