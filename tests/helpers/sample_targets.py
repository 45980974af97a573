"""Importable registry used by the repro script tests."""

from fuzzmux import Registry, fuzz_test

registry = Registry()


@fuzz_test(registry)
def parse_header(name: str, length: int) -> None:
    if length < 0:
        raise ValueError(length)


not_a_registry = object()
