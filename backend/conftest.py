"""
Pytest integration for the dict-returning checks in test_runner and test_basic.

Each test function returns either a bool or a result dict with a
'passed' key; this hook turns those return values into assertions.
"""

import pytest


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    funcargs = pyfuncitem.funcargs
    kwargs = {name: funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
    result = pyfuncitem.obj(**kwargs)
    if isinstance(result, dict) and 'passed' in result:
        assert result['passed'], (
            f"{result.get('name')}: expected {result.get('expected')}, "
            f"got {result.get('actual')} {result.get('details', '')}"
        )
    elif isinstance(result, bool):
        assert result
    return True
