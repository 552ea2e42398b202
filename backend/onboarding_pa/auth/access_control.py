"""
Attribute-filtered access control.

Grants map a (role, resource, action) triple to an ordered list of attribute
tokens. A token allows one attribute, allows every attribute (wildcard) or
denies one attribute. Resolution is always the same, whatever the token order:

    allowed = expand(positive tokens, candidates) - denied names

A triple with no grant is an implicit deny: checks return an empty result and
never raise. A grant with an empty token list authorizes the action itself but
exposes no attribute.

Possession ("own"/"any") only scopes the grant. Callers of an "own" check must
establish that the requester owns the accessed record.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Final, Union


class Role(str, Enum):
    ORG_DELEGATE = "ORG_DELEGATE"
    DEVELOPER = "DEVELOPER"
    ORG_MANAGER = "ORG_MANAGER"
    ADMIN = "ADMIN"


class Resource(str, Enum):
    ADMINISTRATION = "administration"
    ORGANIZATION = "organization"
    PROFILE = "profile"
    SIGNED_DOCUMENT = "signed-document"
    UNSIGNED_DOCUMENT = "unsigned-document"


class Verb(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Possession(str, Enum):
    ANY = "any"
    OWN = "own"


@dataclass(frozen=True)
class Action:
    verb: Verb
    possession: Possession

    @classmethod
    def parse(cls, value: str) -> "Action":
        """Parse the ``verb:possession`` form, e.g. ``read:own``."""
        verb, sep, possession = value.partition(":")
        if not sep:
            raise ValueError(f"Invalid action '{value}', expected 'verb:possession'")
        return cls(Verb(verb), Possession(possession))

    def __str__(self) -> str:
        return f"{self.verb.value}:{self.possession.value}"


CREATE_ANY: Final = Action(Verb.CREATE, Possession.ANY)
CREATE_OWN: Final = Action(Verb.CREATE, Possession.OWN)
READ_ANY: Final = Action(Verb.READ, Possession.ANY)
READ_OWN: Final = Action(Verb.READ, Possession.OWN)
UPDATE_ANY: Final = Action(Verb.UPDATE, Possession.ANY)
UPDATE_OWN: Final = Action(Verb.UPDATE, Possession.OWN)
DELETE_ANY: Final = Action(Verb.DELETE, Possession.ANY)
DELETE_OWN: Final = Action(Verb.DELETE, Possession.OWN)


# ============================================================================
# ATTRIBUTE TOKENS
# ============================================================================

ALL_ATTRIBUTES_TOKEN: Final[str] = "*"
NEGATION_PREFIX: Final[str] = "!"


@dataclass(frozen=True)
class Wildcard:
    def __str__(self) -> str:
        return ALL_ATTRIBUTES_TOKEN


@dataclass(frozen=True)
class Allow:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Deny:
    name: str

    def __str__(self) -> str:
        return f"{NEGATION_PREFIX}{self.name}"


AttributeToken = Union[Wildcard, Allow, Deny]

ALL_ATTRIBUTES: Final = Wildcard()


def parse_attribute_token(value: str) -> AttributeToken:
    """Convert the ``*`` / ``name`` / ``!name`` convention into a token.

    Raises:
        ValueError: If the token is empty or negates nothing
    """
    value = value.strip()
    if value == ALL_ATTRIBUTES_TOKEN:
        return ALL_ATTRIBUTES
    if value.startswith(NEGATION_PREFIX):
        name = value[len(NEGATION_PREFIX):].strip()
        if not name or name == ALL_ATTRIBUTES_TOKEN:
            raise ValueError(f"Invalid negated attribute token '{value}'")
        return Deny(name)
    if not value:
        raise ValueError("Attribute token must not be empty")
    return Allow(value)


@dataclass(frozen=True)
class AttributeRule:
    tokens: tuple[AttributeToken, ...] = ()

    @classmethod
    def of(cls, *tokens: AttributeToken | str) -> "AttributeRule":
        return cls(
            tuple(
                parse_attribute_token(token) if isinstance(token, str) else token
                for token in tokens
            )
        )

    @classmethod
    def merge(cls, rules: Iterable["AttributeRule"]) -> "AttributeRule":
        tokens: list[AttributeToken] = []
        for rule in rules:
            tokens.extend(rule.tokens)
        return cls(tuple(tokens))

    @property
    def has_wildcard(self) -> bool:
        return any(isinstance(token, Wildcard) for token in self.tokens)

    @property
    def allowed_names(self) -> frozenset[str]:
        return frozenset(token.name for token in self.tokens if isinstance(token, Allow))

    @property
    def denied_names(self) -> frozenset[str]:
        return frozenset(token.name for token in self.tokens if isinstance(token, Deny))

    def apply(self, candidates: Iterable[str]) -> tuple[str, ...]:
        """Return the permitted candidates, in candidate order, without duplicates."""
        denied = self.denied_names
        allowed = self.allowed_names
        wildcard = self.has_wildcard
        result: list[str] = []
        seen: set[str] = set()
        for name in candidates:
            if name in seen:
                continue
            seen.add(name)
            if name in denied:
                continue
            if wildcard or name in allowed:
                result.append(name)
        return tuple(result)

    def __str__(self) -> str:
        return "[" + ", ".join(str(token) for token in self.tokens) + "]"


# ============================================================================
# GRANTS TABLE - IMMUTABLE, VALIDATED AT CONSTRUCTION
# ============================================================================

GrantKey = tuple[Role, Resource, Action]


class GrantsTable:
    """Immutable (role, resource, action) -> AttributeRule mapping."""

    def __init__(self, grants: Mapping[GrantKey, AttributeRule]):
        errors: list[str] = []
        for key, rule in grants.items():
            role, resource, action = key
            if not isinstance(role, Role):
                errors.append(f"Invalid role in grants: {role!r}")
            if not isinstance(resource, Resource):
                errors.append(f"Invalid resource in grants: {resource!r}")
            if not isinstance(action, Action):
                errors.append(f"Invalid action in grants: {action!r}")
            if not isinstance(rule, AttributeRule):
                errors.append(f"Grant {key!r} is not an AttributeRule")
        if errors:
            raise ValueError(
                "Grants table validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )
        self._grants: Mapping[GrantKey, AttributeRule] = MappingProxyType(dict(grants))

    @classmethod
    def from_nested(
        cls, nested: Mapping[Any, Mapping[Any, Mapping[Any, Iterable[AttributeToken | str]]]]
    ) -> "GrantsTable":
        """Build the table from ``role -> resource -> "verb:possession" -> tokens``.

        Raises:
            ValueError: On unknown roles, resources, actions or malformed tokens
        """
        grants: dict[GrantKey, AttributeRule] = {}
        for role, resources in nested.items():
            for resource, actions in resources.items():
                for action, tokens in actions.items():
                    key = (
                        Role(role),
                        Resource(resource),
                        action if isinstance(action, Action) else Action.parse(action),
                    )
                    grants[key] = AttributeRule.of(*tokens)
        return cls(grants)

    def get(self, role: Role, resource: Resource, action: Action) -> AttributeRule | None:
        return self._grants.get((role, resource, action))

    def __contains__(self, key: object) -> bool:
        return key in self._grants

    def __iter__(self):
        return iter(self._grants)

    def __len__(self) -> int:
        return len(self._grants)

    def items(self):
        return self._grants.items()


# ============================================================================
# CHECKS
# ============================================================================

@dataclass(frozen=True)
class Permission:
    """Outcome of a check. ``granted`` is False when no rule matched."""

    granted: bool
    rule: AttributeRule = AttributeRule()

    def attributes(self, candidates: Iterable[str]) -> tuple[str, ...]:
        if not self.granted:
            return ()
        return self.rule.apply(candidates)

    def filter(self, data: Mapping[str, Any]) -> dict[str, Any]:
        allowed = set(self.attributes(data.keys()))
        return {key: value for key, value in data.items() if key in allowed}


DENIED: Final = Permission(granted=False)


def _coerce(enum_type, value):
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        return None


class AccessControl:
    """Read-only authorization checks over one GrantsTable.

    Instances hold no mutable state and are shared between concurrent
    requests.
    """

    def __init__(self, grants: GrantsTable):
        self._grants = grants

    @property
    def grants(self) -> GrantsTable:
        return self._grants

    def check(
        self,
        role: Role | str,
        resource: Resource | str,
        verb: Verb | str,
        possession: Possession | str,
    ) -> Permission:
        key = (
            _coerce(Role, role),
            _coerce(Resource, resource),
            _coerce(Verb, verb),
            _coerce(Possession, possession),
        )
        if None in key:
            return DENIED
        role_, resource_, verb_, possession_ = key
        rule = self._grants.get(role_, resource_, Action(verb_, possession_))
        if rule is None:
            return DENIED
        return Permission(granted=True, rule=rule)

    def check_roles(
        self,
        roles: Iterable[Role | str],
        resource: Resource | str,
        verb: Verb | str,
        possession: Possession | str,
    ) -> Permission:
        """Merge the grants of several roles; a negation in any rule wins."""
        rules = [
            permission.rule
            for permission in (self.check(role, resource, verb, possession) for role in roles)
            if permission.granted
        ]
        if not rules:
            return DENIED
        return Permission(granted=True, rule=AttributeRule.merge(rules))

    def authorized_attributes(
        self,
        role: Role | str,
        resource: Resource | str,
        verb: Verb | str,
        possession: Possession | str,
        candidates: Iterable[str],
    ) -> tuple[str, ...]:
        return self.check(role, resource, verb, possession).attributes(candidates)

    def authorized_attributes_for_roles(
        self,
        roles: Iterable[Role | str],
        resource: Resource | str,
        verb: Verb | str,
        possession: Possession | str,
        candidates: Iterable[str],
    ) -> tuple[str, ...]:
        return self.check_roles(roles, resource, verb, possession).attributes(candidates)
