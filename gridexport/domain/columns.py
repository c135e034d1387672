from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from gridexport.domain.exceptions import ColumnConfigError
from gridexport.domain.ports.grid_source import ColumnFactoryProtocol

_KNOWN_FIELDS = ("key", "label", "sort_order")
_FIELD_ALIASES = {"sortOrder": "sort_order"}


@dataclass(frozen=True)
class ColumnDefinition:
    """
    Назначение:
        Неизменяемое описание колонки грида.

    Поля:
        key: уникальный ключ колонки (не пустой).
        label: отображаемое имя или None.
        sort_order: порядок сортировки; None и 0 означают "не задан".
        attributes: прочие подсказки отображения/форматирования от адаптера или конфига.

    Инварианты/гарантии:
        - Экземпляр не мутируется; любое "изменение" создаёт новый объект через фабрику.
        - to_dict() возвращает полный набор атрибутов, пригодный для обратного create().
    """

    key: str
    label: str | None = None
    sort_order: int | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key.strip():
            raise ColumnConfigError(f"Column definition requires a non-empty key: {self.key!r}")
        reserved = sorted(name for name in self.attributes if name in _KNOWN_FIELDS or name in _FIELD_ALIASES)
        if reserved:
            raise ColumnConfigError(
                f"Column '{self.key}' attributes shadow reserved fields: {', '.join(reserved)}",
                details={"column": self.key, "reserved": reserved},
            )
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def has_sort_order(self) -> bool:
        return bool(self.sort_order)

    @property
    def display_label(self) -> str:
        if self.label:
            return self.label
        return " ".join(part.capitalize() for part in self.key.replace("-", "_").split("_") if part)

    def get(self, name: str, default: Any = None) -> Any:
        if name in _KNOWN_FIELDS:
            return getattr(self, name)
        return self.attributes.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "sort_order": self.sort_order,
        }
        data.update(self.attributes)
        return data


class ColumnDefinitionFactory(ColumnFactoryProtocol):
    """
    Назначение/ответственность:
        Создание ColumnDefinition из словаря атрибутов.
    Контракт:
        - Принимает sort_order и camelCase-алиас sortOrder.
        - Числовые строки sort_order приводятся к int.
        - Пустой key, нецелый или отрицательный sort_order -> ColumnConfigError.
    """

    def create(self, mapping: Mapping[str, Any]) -> ColumnDefinition:
        data: dict[str, Any] = {}
        for name, value in mapping.items():
            data[_FIELD_ALIASES.get(name, name)] = value

        key = data.pop("key", None)
        if not isinstance(key, str) or not key.strip():
            raise ColumnConfigError(f"Column definition requires a non-empty key: {dict(mapping)!r}")
        key = key.strip()

        label = data.pop("label", None)
        sort_order = _parse_sort_order(key, data.pop("sort_order", None))

        return ColumnDefinition(
            key=key,
            label=str(label) if label is not None else None,
            sort_order=sort_order,
            attributes=data,
        )


def _parse_sort_order(key: str, value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ColumnConfigError(f"Invalid sort order for column '{key}': {value!r}", details={"column": key})
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        parsed = int(value.strip())
    else:
        raise ColumnConfigError(f"Invalid sort order for column '{key}': {value!r}", details={"column": key})
    if parsed < 0:
        raise ColumnConfigError(f"Negative sort order for column '{key}': {parsed}", details={"column": key})
    return parsed


def _is_empty(value: Any) -> bool:
    return not value or value == "0"


def filter_empty(values: Mapping[str, Any]) -> dict[str, Any]:
    """
    Назначение:
        Оставляет только непустые значения.
        Пустыми считаются все ложные значения (None, "", 0, False, пустые коллекции) и строка "0".
    """
    return {name: value for name, value in values.items() if not _is_empty(value)}


def merge_column_definitions(
    base: ColumnDefinition,
    override: ColumnDefinition | None,
    factory: ColumnFactoryProtocol,
) -> ColumnDefinition:
    """
    Назначение:
        Частичный патч колонки: непустые поля override поверх base.
    Алгоритм:
        - override is None -> base без изменений.
        - Иначе create(base.to_dict() | filter_empty(override.to_dict())).
    """
    if override is None:
        return base
    merged = base.to_dict()
    merged.update(filter_empty(override.to_dict()))
    return factory.create(merged)


def get_max_sort_order(columns: Iterable[ColumnDefinition]) -> int:
    max_sort_order = 0
    for column in columns:
        if column.sort_order is not None:
            max_sort_order = max(max_sort_order, column.sort_order)
    return max_sort_order


def add_missing_sort_order(
    columns: Sequence[ColumnDefinition],
    factory: ColumnFactoryProtocol,
) -> list[ColumnDefinition]:
    """
    Назначение:
        Проставляет sort_order всем колонкам без него.

    Алгоритм:
        - max = наибольший заданный sort_order (0, если нет ни одного).
        - Колонки без порядка получают max+1, max+2, ... в исходном порядке.
        - Колонки с явным sort_order не перенумеровываются.

    Выходные данные:
        list[ColumnDefinition]
            Новый список той же длины и в том же порядке.
    """
    next_sort_order = get_max_sort_order(columns)
    result: list[ColumnDefinition] = []
    for column in columns:
        if column.has_sort_order:
            result.append(column)
            continue
        next_sort_order += 1
        data = column.to_dict()
        data["sort_order"] = next_sort_order
        result.append(factory.create(data))
    return result


def sort_columns(columns: Iterable[ColumnDefinition]) -> list[ColumnDefinition]:
    # sorted() стабилен: равные sort_order сохраняют исходный порядок
    return sorted(columns, key=lambda column: column.sort_order or 0)


__all__ = [
    "ColumnDefinition",
    "ColumnDefinitionFactory",
    "add_missing_sort_order",
    "filter_empty",
    "get_max_sort_order",
    "merge_column_definitions",
    "sort_columns",
]
