from typing import Any, Callable, Iterable, Mapping, Optional, Union

FieldExtractor = Union[str, Callable[[Mapping[str, Any]], Any]]


def extract_field(record: Mapping[str, Any], extractor: FieldExtractor) -> Any:
    if callable(extractor):
        return extractor(record)
    value: Any = record
    for part in extractor.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def build_haystack(record: Mapping[str, Any], field_extractors: Iterable[FieldExtractor]) -> str:
    return "".join(_as_text(extract_field(record, ex)) for ex in field_extractors).lower()


def matches_text(
    record: Mapping[str, Any],
    query: Optional[str],
    field_extractors: Iterable[FieldExtractor],
) -> bool:
    if query is None or not query.strip():
        return True
    if not isinstance(record, Mapping):
        return False
    return query.lower() in build_haystack(record, field_extractors)
