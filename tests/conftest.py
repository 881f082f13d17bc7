"""Shared fixtures for tscatalog tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tscatalog.log import reset_logging


# Excerpt of the Japanese Dash wallet catalog plus a few synthetic
# messages covering unfinished, vanished and disambiguated entries.
DASH_JA_TS = """\
<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE TS>
<TS language="ja" version="2.1">
<context>
    <name>AddressBookPage</name>
    <message>
        <source>&amp;New</source>
        <translation>新規(&amp;N)</translation>
    </message>
    <message>
        <source>&amp;Copy</source>
        <translation>コピー(&amp;C)</translation>
    </message>
    <message>
        <source>There was an error trying to save the address list to %1. Please try again.</source>
        <translation>アドレスのリストを %1 へ保存する際にエラーが発生しました。再試行してください。</translation>
    </message>
    <message>
        <source>C&amp;lose</source>
        <translation type="unfinished"></translation>
    </message>
    <message>
        <source>Sending addresses</source>
        <translation type="vanished">送金先アドレス</translation>
    </message>
</context>
<context>
    <name>AskPassphraseDialog</name>
    <message>
        <source>Warning: If you encrypt your wallet and lose your passphrase, you will &lt;b&gt;LOSE ALL OF YOUR DASH&lt;/b&gt;!</source>
        <translation>警告: ウォレットを暗号化しパスフレーズを紛失した場合、あなたは &lt;b&gt;すべてのDash&lt;/b&gt;を失います!</translation>
    </message>
</context>
<context>
    <name>BitcoinGUI</name>
    <message>
        <source>&amp;About %1</source>
        <translation>%1 について (&amp;A)</translation>
    </message>
    <message numerus="yes">
        <source>%n active connection(s) to Dash network</source>
        <translation><numerusform>%n アクティブコネクション</numerusform></translation>
    </message>
    <message>
        <source>Syncing Headers (%1%)...</source>
        <translation>ヘッダーを同期しています (%1%)...</translation>
    </message>
    <message numerus="yes">
        <source>Processed %n block(s) of transaction history.</source>
        <translation><numerusform>%n ブロックのトランザクション履歴を処理</numerusform></translation>
    </message>
    <message>
        <source>Total: %1 (PS compatible: %2 / Enabled: %3)</source>
        <translation>合計: %1 (PS 互換: %2 / 有効: %3)</translation>
    </message>
    <message>
        <source>Open</source>
        <comment>verb</comment>
        <translation>開く</translation>
    </message>
    <message>
        <source>Open</source>
        <comment>adjective</comment>
        <translation>未確定</translation>
    </message>
    <message>
        <source>Wallet</source>
        <translation type="unfinished">ウォレット</translation>
    </message>
</context>
<context>
    <name>CoinControlDialog</name>
    <message>
        <source>Amount</source>
        <translation>金額</translation>
    </message>
</context>
<context>
    <name>OptionsDialog</name>
    <message>
        <source>Choose data directory on startup (default: %u)</source>
        <translation>起動時にデータディレクトリを選ぶ (初期設定: %u)</translation>
    </message>
</context>
<context>
    <name>QObject</name>
    <message>
        <source>Amount</source>
        <translation>総額</translation>
    </message>
</context>
</TS>
"""


def make_ts(messages: str, language: str = "ja", context: str = "Test") -> str:
    """Wrap ``<message>`` markup in a minimal TS document."""
    return (
        f'<?xml version="1.0" encoding="utf-8"?>\n'
        f'<TS language="{language}" version="2.1">\n'
        f"<context>\n    <name>{context}</name>\n{messages}\n</context>\n</TS>\n"
    )


@pytest.fixture(autouse=True)
def clean_logging():
    """Remove handlers installed by configure_logging after each test."""
    yield
    reset_logging()


@pytest.fixture
def dash_ja_ts() -> str:
    return DASH_JA_TS


@pytest.fixture
def locale_dir(tmp_path: Path) -> Path:
    """Directory holding dash_ja.ts."""
    directory = tmp_path / "locale"
    directory.mkdir()
    (directory / "dash_ja.ts").write_text(DASH_JA_TS, encoding="utf-8")
    return directory


@pytest.fixture
def dash_ja_path(locale_dir: Path) -> Path:
    return locale_dir / "dash_ja.ts"
