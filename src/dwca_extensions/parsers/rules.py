"""
Rule variants interpreted by the RuleEngine.

The set is closed: the engine dispatches on the rule type and has one
handler per variant. Rules carry data only.

On enter (element start):
- Create:            push a new object built by `factory`
- CaptureAttribute:  stage an attribute value for a later InvokeSetter
- ResolveThesaurus:  attach a Vocabulary referenced by URL to the top object

On exit (element end):
- InvokeSetter:      consume one staged value, coerce it, set a field on the top object
- AttachChild:       pop the top object and hand it to `method` of the new top
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Union

from dwca_extensions.validators import Coercer, to_text


class RuleKind(str, Enum):
    ON_ENTER = 'enter'
    ON_EXIT = 'exit'


@dataclass(frozen=True)
class Create:
    factory: Callable[[], Any]
    kind: ClassVar[RuleKind] = RuleKind.ON_ENTER


@dataclass(frozen=True)
class CaptureAttribute:
    attribute: str
    kind: ClassVar[RuleKind] = RuleKind.ON_ENTER


@dataclass(frozen=True)
class ResolveThesaurus:
    attribute: str = 'thesaurus'
    target: str = 'vocabulary'
    kind: ClassVar[RuleKind] = RuleKind.ON_ENTER


@dataclass(frozen=True)
class InvokeSetter:
    field: str
    coercer: Coercer = to_text
    kind: ClassVar[RuleKind] = RuleKind.ON_EXIT


@dataclass(frozen=True)
class AttachChild:
    method: str
    kind: ClassVar[RuleKind] = RuleKind.ON_EXIT


Rule = Union[Create, CaptureAttribute, ResolveThesaurus, InvokeSetter, AttachChild]

RULE_TYPES = (Create, CaptureAttribute, ResolveThesaurus, InvokeSetter, AttachChild)
