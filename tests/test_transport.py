"""
Tests for transport helpers that need no child process.
"""

from mcpcute.mcp.transport import StdioSession, root_cause
from mcpcute.spec import BackendSpec


class TestRootCause:
    def test_single_member_group_is_unwrapped(self):
        err = FileNotFoundError("no such file: mcp-server")
        assert root_cause(ExceptionGroup("unhandled errors in a TaskGroup", [err])) is err

    def test_nested_groups_are_unwrapped(self):
        err = OSError("broken pipe")
        group = ExceptionGroup("outer", [ExceptionGroup("inner", [err])])
        assert root_cause(group) is err

    def test_multi_member_group_is_kept(self):
        group = ExceptionGroup("two", [ValueError("a"), KeyError("b")])
        assert root_cause(group) is group

    def test_plain_exception_passes_through(self):
        err = RuntimeError("boom")
        assert root_cause(err) is err


class TestStdioSessionState:
    def test_not_alive_before_connect(self):
        session = StdioSession("fs", BackendSpec(name="fs", command="fake-server"))
        assert not session.is_alive
