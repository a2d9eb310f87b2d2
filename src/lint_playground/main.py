from lint_playground.config import load_config
from lint_playground.errors import EngineError
from lint_playground.log_output.log import log, set_log_is
from lint_playground.parsing import diagnostic_format
from lint_playground.session.controller import LintSessionController
from lint_playground.session.renderer import CollectingRenderer
from lint_playground.tools import permalink
from lint_playground.tools.linter import ActionlintBridge
from lint_playground.tools.source import SourceResolver
import argparse
import asyncio
import json
import sys

# コマンドライン引数のデフォルト値
MATCHER_OWNER = "actionlint"
CHECK_PATH = "test.yaml" # checkで出力するエラー行のファイルパス
CHECK_TIMEOUT = 60.0 # checkでlint結果を待つ時間の上限（秒）
SERVE_HOST = "127.0.0.1"
SERVE_PORT = 8000


def cmd_matcher(args) -> int:
    text = json.dumps(diagnostic_format.problem_matcher(args.owner), indent=2)
    if args.path is None:
        print(text)
    else:
        with open(args.path, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        print(f"Wrote to {args.path}")
    return 0


def cmd_scan(args) -> int:
    if args.file is None:
        lines = sys.stdin.read().splitlines()
    else:
        with open(args.file, encoding="utf-8") as f:
            lines = f.read().splitlines()
    found = 0
    for d in diagnostic_format.scan(lines):
        found += 1
        if args.plain:
            print(diagnostic_format.generate(d.to_diagnostic(), diagnostic_format.strip_escapes(d.path)))
        else:
            print(d.model_dump_json())
    log("info", f"{found}件のエラー行が見つかりました")
    return 1 if found and args.fail else 0


def cmd_permalink(args) -> int:
    src = sys.stdin.read().strip()
    if not args.keep_comments:
        src = permalink.strip_comment_lines(src)
    print(permalink.permalink_url(src, args.base_url))
    return 0


async def run_check(args) -> int:
    config = load_config()
    params = {"kind": args.kind}
    if args.source is not None:
        with open(args.source, encoding="utf-8") as f:
            params["s"] = f.read()
    if args.url is not None:
        params["u"] = args.url

    renderer = CollectingRenderer()
    controller = LintSessionController(
        bridge=ActionlintBridge(config.actionlint_path),
        renderer=renderer,
        resolver=SourceResolver(timeout=config.fetch_timeout),
        config=config,
    )
    await controller.start(params, args.permalink or "")
    if not controller.bridge.is_ready():
        return 2
    try:
        diagnostics = await asyncio.wait_for(renderer.wait_result(), timeout=args.timeout)
    except asyncio.TimeoutError:
        log("error", f"{args.timeout}秒以内にlint結果が返りませんでした")
        return 2
    except EngineError as e:
        log("error", f"lintを実行できませんでした: {e}")
        return 2
    finally:
        controller.close()

    for d in diagnostics:
        print(diagnostic_format.generate(d, args.path, colored=args.color))
    if diagnostics:
        log("fail", f"{len(diagnostics)}件のエラーが検出されました")
        return 1
    log("success", "エラーは検出されませんでした")
    return 0


def cmd_check(args) -> int:
    return asyncio.run(run_check(args))


def cmd_serve(args) -> int:
    import uvicorn
    uvicorn.run("lint_playground.server.playground_api:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    config = load_config()
    parser = argparse.ArgumentParser(
        prog="lint-playground",
        description="actionlint playgroundのセッションとCI連携のためのツール"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("matcher", help="GitHub Actionsのproblem matcher定義を出力します")
    p.add_argument("path", nargs="?", default=None, help="書き込み先のファイル（省略時は標準出力）")
    p.add_argument("--owner", type=str, default=MATCHER_OWNER, help="problem matcherのowner（デフォルト:actionlint）")
    p.set_defaults(func=cmd_matcher)

    p = sub.add_parser("scan", help="actionlintの出力からエラー行を取り出します")
    p.add_argument("file", nargs="?", default=None, help="読み込むログ（省略時は標準入力）")
    p.add_argument("--plain", action="store_true", help="JSONではなく色なしのエラー行で出力します")
    p.add_argument("--fail", action="store_true", help="エラー行があれば終了コード1で終了します")
    p.set_defaults(func=cmd_scan)

    p = sub.add_parser("permalink", help="標準入力のYAMLからplaygroundのURLを作成します")
    p.add_argument("--base-url", type=str, default=config.base_url, help="playgroundのURL")
    p.add_argument("--keep-comments", action="store_true", help="コメント行を削除しません")
    p.set_defaults(func=cmd_permalink)

    p = sub.add_parser("check", help="セッションを通してactionlintを1回実行します")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--source", type=str, help="lintするファイル")
    src.add_argument("--url", type=str, help="lintするファイルのURL")
    src.add_argument("--permalink", type=str, help="パーマリンクのトークン（URLの#以降）")
    p.add_argument("--kind", choices=["workflow", "action"], default="workflow", help="ソースの種類（デフォルト:workflow）")
    p.add_argument("--path", type=str, default=CHECK_PATH, help="エラー行に出すファイルパス")
    p.add_argument("--color", action="store_true", help="エラー行を色付けします")
    p.add_argument("--timeout", type=float, default=CHECK_TIMEOUT, help="lint結果を待つ秒数")
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("serve", help="playground用APIサーバーを起動します")
    p.add_argument("--host", type=str, default=SERVE_HOST)
    p.add_argument("--port", type=int, default=SERVE_PORT)
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    set_log_is(load_config().log_is)
    return args.func(args)


# 実行例）
# lint-playground matcher .github/actionlint-matcher.json
# actionlint | lint-playground scan --plain
# lint-playground permalink < .github/workflows/ci.yml
# lint-playground check --source .github/workflows/ci.yml
if __name__ == "__main__":
    sys.exit(main())
