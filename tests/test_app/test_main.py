"""Tests for the application runner and CLI entry point."""

import io
import json
from unittest.mock import patch

import pytest

from mbean2json.config.models import ExporterConfig
from mbean2json.config.settings import JMX_CONNECTOR_CREDENTIALS
from mbean2json.errors import JmxAuthenticationError, JmxConnectionError
from mbean2json.jmx.values import AttributeDescriptor
from mbean2json.main import MBean2JSONApp, main

# Fixtures imported from conftest.py: beans, make_connection, make_client, logger

TARGET = "service:jmx:rmi:///jndi/rmi://localhost:9875/jmxrmi"


def metric_names(text):
    return [m["name"] for m in json.loads(text)["metrics"]]


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(JMX_CONNECTOR_CREDENTIALS, raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return tmp_path


@pytest.fixture
def two_jvms(make_connection):
    return {
        "service:jmx:rmi:///jndi/rmi://a:1/jmxrmi": make_connection({
            "app:type=A": [(AttributeDescriptor("X", "int"), 1),
                           (AttributeDescriptor("Y", "int"), 2)],
        }),
        "service:jmx:rmi:///jndi/rmi://b:2/jmxrmi": make_connection({
            "app:type=B": [(AttributeDescriptor("Z", "int"), 3)],
        }),
    }


class TestApp:
    """MBean2JSONApp runs against fake JVMs."""

    def test_run_single_target(self, beans, make_connection, make_client, logger):
        config = ExporterConfig.from_options(mbean_filter="*")
        client = make_client({TARGET: make_connection(beans)})
        stream = io.StringIO()

        count = MBean2JSONApp(config, client, stream, logger).run()

        assert count == 13
        names = metric_names(stream.getvalue())
        assert len(names) == 13
        assert names[0] == "java.memory.heapmemoryusage[committed]"

    def test_run_targets_in_order(self, two_jvms, make_client, logger):
        config = ExporterConfig.from_options(jvm_targets="b:2,a:1", mbean_filter="app:*")
        stream = io.StringIO()

        MBean2JSONApp(config, make_client(two_jvms), stream, logger).run()

        assert metric_names(stream.getvalue()) == ["app.b.z", "app.a.x", "app.a.y"]

    def test_no_matching_beans_gives_empty_document(self, beans, make_connection, make_client, logger):
        config = ExporterConfig.from_options(mbean_filter="com.example:*!org.example:*")
        client = make_client({TARGET: make_connection(beans)})
        stream = io.StringIO()

        MBean2JSONApp(config, client, stream, logger).run()

        assert json.loads(stream.getvalue()) == {"metrics": []}

    def test_no_targets(self, make_client, logger):
        config = ExporterConfig.from_options(jvm_targets="")
        stream = io.StringIO()

        assert MBean2JSONApp(config, make_client({}), stream, logger).run() == 0
        assert json.loads(stream.getvalue()) == {"metrics": []}

    def test_fatal_target_stops_processing(self, two_jvms, make_client, logger):
        two_jvms["service:jmx:rmi:///jndi/rmi://c:3/jmxrmi"] = JmxConnectionError("Connection refused")
        config = ExporterConfig.from_options(jvm_targets="a:1,c:3,b:2", mbean_filter="app:*")
        client = make_client(two_jvms)
        stream = io.StringIO()

        with pytest.raises(JmxConnectionError):
            MBean2JSONApp(config, client, stream, logger).run()

        # Partial output, no footer, later targets untouched
        assert '"app.a.y"' in stream.getvalue()
        assert "    ]\n}" not in stream.getvalue()
        assert [url for url, _ in client.connected] == [
            "service:jmx:rmi:///jndi/rmi://a:1/jmxrmi",
            "service:jmx:rmi:///jndi/rmi://c:3/jmxrmi",
        ]

    @pytest.mark.asyncio
    async def test_run_parallel_keeps_target_order(self, two_jvms, make_client, logger):
        config = ExporterConfig.from_options(
            jvm_targets="b:2,a:1", mbean_filter="app:*", parallel=True
        )
        client = make_client(two_jvms)
        stream = io.StringIO()

        count = await MBean2JSONApp(config, client, stream, logger).run_parallel()

        assert count == 3
        assert client.jvm_started is True
        assert metric_names(stream.getvalue()) == ["app.b.z", "app.a.x", "app.a.y"]
        assert all(connection.closed for connection in two_jvms.values())

    @pytest.mark.asyncio
    async def test_run_parallel_failure_is_fatal(self, two_jvms, make_client, logger):
        two_jvms["service:jmx:rmi:///jndi/rmi://b:2/jmxrmi"] = JmxConnectionError("refused")
        config = ExporterConfig.from_options(jvm_targets="a:1,b:2", parallel=True)

        with pytest.raises(JmxConnectionError):
            await MBean2JSONApp(config, make_client(two_jvms), io.StringIO(), logger).run_parallel()


class TestMain:
    """CLI behaviour and exit codes."""

    def test_success(self, beans, make_connection, make_client, capsys):
        client = make_client({TARGET: make_connection(beans)})

        with patch("mbean2json.main.JmxClient", return_value=client):
            main(["--jvm-targets", "localhost:9875", "--mbean-filter", "*", "--compat-only"])

        names = metric_names(capsys.readouterr().out)
        assert len(names) == 9
        assert "java.runtime.bootclasspath" not in names

    def test_parallel_flag(self, two_jvms, make_client, capsys):
        with patch("mbean2json.main.JmxClient", return_value=make_client(two_jvms)):
            main(["--jvm-targets", "a:1,b:2", "--mbean-filter", "app:*", "--parallel"])

        assert metric_names(capsys.readouterr().out) == ["app.a.x", "app.a.y", "app.b.z"]

    def test_config_file_used(self, isolated_cwd, two_jvms, make_client, capsys):
        (isolated_cwd / "mbean2json.properties").write_text(
            "mbean2json.jvmtargets=b:2\nmbean2json.mbeanfilter=app:*\n"
        )
        with patch("mbean2json.main.JmxClient", return_value=make_client(two_jvms)):
            main([])

        assert metric_names(capsys.readouterr().out) == ["app.b.z"]

    def test_missing_port_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--jvm-targets", "localhost"])

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Missing port" in captured.err

    def test_malformed_filter_exits_1(self, beans, make_connection, make_client, capsys):
        client = make_client({TARGET: make_connection(beans)})

        with patch("mbean2json.main.JmxClient", return_value=client):
            with pytest.raises(SystemExit) as exc_info:
                main(["--mbean-filter", "no-colon"])

        assert exc_info.value.code == 1
        assert "Malformed MBean filter: no-colon" in capsys.readouterr().err

    def test_authentication_failure_exits_1(self, make_client, capsys):
        client = make_client({TARGET: JmxAuthenticationError("Authentication failed! for: x")})

        with patch("mbean2json.main.JmxClient", return_value=client):
            with pytest.raises(SystemExit) as exc_info:
                main(["--log-level", "INFO"])

        assert exc_info.value.code == 1
        assert JMX_CONNECTOR_CREDENTIALS in capsys.readouterr().err

    def test_malformed_credentials_exit_1(self, monkeypatch, capsys):
        monkeypatch.setenv(JMX_CONNECTOR_CREDENTIALS, "no-separator")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert capsys.readouterr().out == ""

    def test_unexpected_error_exits_1(self, make_client, capsys):
        client = make_client({TARGET: RuntimeError("boom")})

        with patch("mbean2json.main.JmxClient", return_value=client):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        assert "boom" in capsys.readouterr().err

    def test_unknown_option_is_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--bogus"])
        assert exc_info.value.code == 2
