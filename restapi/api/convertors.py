"""URL Convertors — path segment constraints enforced at route matching time."""

from starlette.convertors import Convertor

from restapi.core.domain_types import PathNamespace


class NamespaceConvertor(Convertor):
    """Matches only the namespaces a pin path may start with."""
    regex = "|".join(ns.value for ns in PathNamespace)

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return str(value)
