"""
Tests for the entry point's exit handling.
"""
from unittest.mock import patch

import pytest

import main
from stakewallet.exceptions import KeypairError


class TestMain:
    """Every exit path ends with Goodbye"""

    def test_clean_exit(self, capsys):
        with patch("main.StakeWalletApp") as app_cls:
            main.main()
        app_cls.return_value.run.assert_called_once()
        assert "Goodbye!" in capsys.readouterr().out

    @pytest.mark.parametrize("interrupt", [KeyboardInterrupt, EOFError])
    def test_interrupted(self, capsys, interrupt):
        with patch("main.StakeWalletApp", side_effect=interrupt):
            main.main()
        out = capsys.readouterr().out
        assert "Error" not in out
        assert "Goodbye!" in out

    def test_wallet_error(self, capsys):
        with patch("main.StakeWalletApp", side_effect=KeypairError("Keypair file not found: id.json")):
            main.main()
        out = capsys.readouterr().out
        assert "Error: Keypair file not found" in out
        assert "Goodbye!" in out

    def test_unexpected_error(self, capsys):
        with patch("main.StakeWalletApp") as app_cls:
            app_cls.return_value.run.side_effect = RuntimeError("boom")
            main.main()
        out = capsys.readouterr().out
        assert "Unexpected error: boom" in out
        assert "Goodbye!" in out
