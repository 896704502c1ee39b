"""
Filter predicate DSL for store-backed sources.

A Predicate wraps a boto3 condition object and composes with ``&``, ``|``
and ``~``. Attr builds predicates on a single attribute. At fetch time
compile_predicate() hands the raw boto3 condition to boto3's own expression
builder, so placeholder naming and reserved-word escaping stay boto3's job.

Usage:
    from pagewise import Attr

    predicate = (Attr("year") >= 2000) & Attr("title").begins_with("The")
    PaginationController.for_store(Book, context, sink, predicate=predicate)

StoreRecord subclasses also expose their fields as Attr builders:

    predicate = (Book.year >= 2000) & (Book.genre == "sci-fi")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from boto3.dynamodb.conditions import And as Boto3And
from boto3.dynamodb.conditions import Attr as Boto3Attr
from boto3.dynamodb.conditions import ConditionBase as Boto3ConditionBase
from boto3.dynamodb.conditions import Not as Boto3Not
from boto3.dynamodb.conditions import Or as Boto3Or

if TYPE_CHECKING:
    from .serializer import StoreSerializer

PredicateLike = Union["Predicate", Boto3ConditionBase]


class Predicate:
    """
    Composable filter predicate.

    Attributes:
        raw: The underlying boto3 ConditionBase
    """

    __slots__ = ("raw",)

    def __init__(self, raw: Boto3ConditionBase) -> None:
        self.raw = raw

    def __and__(self, other: PredicateLike) -> Predicate:
        return Predicate(Boto3And(self.raw, _extract_raw(other)))

    def __rand__(self, other: PredicateLike) -> Predicate:
        return Predicate(Boto3And(_extract_raw(other), self.raw))

    def __or__(self, other: PredicateLike) -> Predicate:
        return Predicate(Boto3Or(self.raw, _extract_raw(other)))

    def __ror__(self, other: PredicateLike) -> Predicate:
        return Predicate(Boto3Or(_extract_raw(other), self.raw))

    def __invert__(self) -> Predicate:
        return Predicate(Boto3Not(self.raw))

    def __repr__(self) -> str:
        return f"Predicate({self.raw!r})"


class Attr:
    """
    A stored attribute to build predicates on.

    Usage:
        Attr("year") >= 2000
        Attr("genre") == "sci-fi"
        Attr("title").begins_with("The")
        Attr("tags").contains("classic")
        Attr("pages").between(100, 300)
        Attr("status").is_in(["draft", "published"])
    """

    __slots__ = ("name", "_boto3_attr")

    def __init__(self, name: str) -> None:
        self.name = name
        self._boto3_attr = Boto3Attr(name)

    def __eq__(self, value: Any) -> Predicate:  # type: ignore[override]
        return Predicate(self._boto3_attr.eq(value))

    def __ne__(self, value: Any) -> Predicate:  # type: ignore[override]
        return Predicate(self._boto3_attr.ne(value))

    def __lt__(self, value: Any) -> Predicate:
        return Predicate(self._boto3_attr.lt(value))

    def __le__(self, value: Any) -> Predicate:
        return Predicate(self._boto3_attr.lte(value))

    def __gt__(self, value: Any) -> Predicate:
        return Predicate(self._boto3_attr.gt(value))

    def __ge__(self, value: Any) -> Predicate:
        return Predicate(self._boto3_attr.gte(value))

    def exists(self) -> Predicate:
        return Predicate(self._boto3_attr.exists())

    def not_exists(self) -> Predicate:
        return Predicate(self._boto3_attr.not_exists())

    def begins_with(self, prefix: str) -> Predicate:
        return Predicate(self._boto3_attr.begins_with(prefix))

    def contains(self, value: Any) -> Predicate:
        """Substring match for strings, membership for lists and sets."""
        return Predicate(self._boto3_attr.contains(value))

    def between(self, low: Any, high: Any) -> Predicate:
        """Inclusive on both ends."""
        return Predicate(self._boto3_attr.between(low, high))

    def is_in(self, values: list[Any]) -> Predicate:
        return Predicate(self._boto3_attr.is_in(values))

    def __repr__(self) -> str:
        return f"Attr({self.name!r})"


def _extract_raw(predicate: PredicateLike) -> Boto3ConditionBase:
    if isinstance(predicate, Predicate):
        return predicate.raw
    if isinstance(predicate, Boto3ConditionBase):
        return predicate
    raise TypeError(
        f"Expected Predicate or boto3 ConditionBase, got {type(predicate).__name__}"
    )


def wrap_predicate(predicate: PredicateLike) -> Predicate:
    """Wraps a raw boto3 condition in a Predicate; passes Predicates through."""
    if isinstance(predicate, Predicate):
        return predicate
    return Predicate(_extract_raw(predicate))


def compile_predicate(
    predicate: PredicateLike,
    serializer: StoreSerializer,
) -> dict[str, Any]:
    """
    Compiles a predicate into Scan request parameters.

    Returns:
        Dict with FilterExpression, and ExpressionAttributeNames /
        ExpressionAttributeValues when boto3 produced any placeholders.
    """
    from boto3.dynamodb.conditions import ConditionExpressionBuilder

    builder = ConditionExpressionBuilder()
    expression = builder.build_expression(_extract_raw(predicate), is_key_condition=False)

    result: dict[str, Any] = {"FilterExpression": expression.condition_expression}

    if expression.attribute_name_placeholders:
        result["ExpressionAttributeNames"] = dict(expression.attribute_name_placeholders)

    if expression.attribute_value_placeholders:
        # boto3 hands back plain Python values; the low-level client wants {"N": "..."}
        result["ExpressionAttributeValues"] = {
            placeholder: serializer.to_store_value(value)
            for placeholder, value in expression.attribute_value_placeholders.items()
        }

    return result
