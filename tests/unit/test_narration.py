"""
Unit tests for the narrator and the per-layer commentary.
"""

import io

from tcpipdemo import layers
from tcpipdemo.message import ApplicationMessage
from tcpipdemo.narration import BANNER_WIDTH, Layer, Narrator


def make_narrator():
    out = io.StringIO()
    return Narrator(out), out


class TestNarrator:

    def test_banner_rows_have_equal_width(self):
        narrator, out = make_narrator()
        narrator.banner("TCP/IP Protocol Demonstration - CLIENT", "second line")

        rows = out.getvalue().splitlines()
        assert len(rows) == 4
        assert rows[0].startswith("╔") and rows[-1].startswith("╚")
        assert all(len(row) == BANNER_WIDTH + 2 for row in rows)
        assert "TCP/IP Protocol Demonstration - CLIENT" in rows[1]

    def test_layer_header(self):
        narrator, out = make_narrator()
        narrator.layer(Layer.TRANSPORT)
        assert "=== TRANSPORT LAYER (TCP) ===" in out.getvalue()

    def test_layer_header_override(self):
        narrator, out = make_narrator()
        narrator.layer(Layer.APPLICATION, "APPLICATION LAYER (Response)")
        assert "=== APPLICATION LAYER (Response) ===" in out.getvalue()

    def test_step_detail_ok(self):
        narrator, out = make_narrator()
        narrator.step("Creating TCP Socket")
        narrator.detail("Socket created", 2)
        narrator.ok("Done")

        assert out.getvalue() == "\n>>> Creating TCP Socket\n    Socket created\n    ✓ Done\n"

    def test_defaults_to_stdout(self, capsys):
        Narrator().line("to stdout")
        assert capsys.readouterr().out == "to stdout\n"


class TestLayerCommentary:

    def test_client_network_layer(self):
        narrator, out = make_narrator()
        layers.describe_client_network(narrator, "127.0.0.1", 9999)

        text = out.getvalue()
        assert "=== NETWORK LAYER (IP) ===" in text
        assert "Server IP: 127.0.0.1" in text
        assert "Server Port: 9999" in text
        assert "AF_INET" in text
        assert "htons(9999)" in text

    def test_link_layers(self):
        narrator, out = make_narrator()
        layers.describe_client_link(narrator)
        layers.describe_server_link(narrator)

        text = out.getvalue()
        assert "=== NETWORK ACCESS LAYER ===" in text
        assert "ARP" in text
        assert "=== DATA LINK LAYER (Ethernet) ===" in text
        assert "Frame Type: 0x0800 (IPv4)" in text

    def test_server_network_layer(self):
        narrator, out = make_narrator()
        layers.describe_server_network(narrator, "127.0.0.1", "10.0.0.7")

        text = out.getvalue()
        assert "Destination IP: 10.0.0.7 (client)" in text
        assert "Protocol: TCP (6)" in text
        assert "TTL: 64 (hops)" in text

    def test_handshake_and_close_steps(self):
        narrator, out = make_narrator()
        layers.describe_handshake(narrator)
        layers.describe_client_close(narrator)

        text = out.getvalue()
        for flag in ("SYN", "SYN-ACK", "ACK", "FIN"):
            assert flag in text
        assert "Step 4: ACK - Client acknowledges" in text

    def test_received_message_structure(self):
        narrator, out = make_narrator()
        msg = ApplicationMessage("Hello", "127.0.0.1", 5, "2024-03-01 14:05:09")
        layers.describe_received_message(narrator, msg)

        text = out.getvalue()
        assert "Timestamp: 2024-03-01 14:05:09" in text
        assert "Client IP: 127.0.0.1" in text
        assert "Message: Hello" in text
        assert "Length: 5 bytes" in text

    def test_received_nothing(self):
        narrator, out = make_narrator()
        layers.describe_received(narrator, 0)
        assert "without sending data" in out.getvalue()
