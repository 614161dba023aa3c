import pytest

from onionnet.cli import OnionRoutingCLI, build_local_network, run_demo


@pytest.fixture
def output():
    return []


@pytest.fixture
def cli(key_pairs, output):
    return OnionRoutingCLI(num_nodes=5, out=output.append, key_pairs=key_pairs)


def test_build_local_network(key_pairs):
    registry, network = build_local_network(4, key_pairs=key_pairs)
    assert sorted(n.node_id for n in registry.list_nodes()) == [1, 2, 3, 4]
    assert sorted(network.routers) == [1, 2, 3, 4]


def test_demo_delivers_both_messages(key_pairs, output):
    _, network = run_demo(out=output.append, key_pairs=key_pairs)
    assert network.users[200].state.last_received_message == "Hello Bob! This is Alice."
    assert network.users[100].state.last_received_message == "Hi Alice! Bob here."


def test_send_and_show(cli, output):
    cli.execute("login 1")
    cli.execute('send "hello there" to 2')
    cli.execute("logout")
    cli.execute("login 2")
    output.clear()
    cli.execute("show messages")
    assert "Received message: hello there" in output


def test_draw_circuit(cli, output):
    cli.execute("login 1")
    cli.execute("send hi to 2")
    output.clear()
    cli.execute("draw circuit")
    hops = [line for line in output if line.startswith("Hop ")]
    assert len(hops) == 3


def test_commands_require_login(cli, output):
    output.clear()
    cli.execute("send hi to 2")
    assert output == ["Please login as a user first."]


def test_usage_errors(cli, output):
    cli.execute("login 1")
    output.clear()
    cli.execute("send hi 2")
    cli.execute("login x")
    cli.execute("frobnicate")
    assert output == [
        'Usage: send "<message>" to <user_id>',
        "Already logged in as user 1. Please logout first.",
        "Unknown command. Type 'help' to see available commands.",
    ]


def test_visualize_writes_html(cli, output, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cli.execute("login 1")
    cli.execute("send hi to 2")
    cli.execute("visualize trace.html")
    assert (tmp_path / "trace.html").exists()
    assert output[-1] == "Wrote trace.html."


def test_exit_stops_loop(cli, output, monkeypatch):
    lines = iter(["help", "exit", "never reached"])
    monkeypatch.setattr("builtins.input", lambda prompt: next(lines))
    cli.start()
    assert output[-1] == "Exiting Onion Routing CLI."


def test_out_of_range_ids_are_usage_errors(cli, output):
    cli.execute("login 99999999999")
    cli.execute("login 7")
    output.clear()
    cli.execute('send "hi" to 99999999999')
    assert output == ['Usage: send "<message>" to <user_id>']
    assert 99999999999 not in cli.network.users


def test_failing_command_does_not_stop_loop(cli, output, monkeypatch):
    def broken(args):
        raise ValueError("boom")

    monkeypatch.setattr(cli, "cmd_nodes", broken)
    lines = iter(["nodes", "exit"])
    monkeypatch.setattr("builtins.input", lambda prompt: next(lines))
    cli.start()
    assert "Error: boom" in output
    assert output[-1] == "Exiting Onion Routing CLI."
