"""
Vinted 发布工具 CLI

所有命令输出结构化 JSON（stdout），日志写到 stderr。

用法:
    python -m easyvinted.cli publish --draft article.json
    python -m easyvinted.cli publish --title "Veste en jean" --price 25 --condition very_good \
        --photos https://cdn.example.com/1.jpg https://cdn.example.com/2.jpg --brand Levi's
    python -m easyvinted.cli auth setup
    python -m easyvinted.cli auth status
    python -m easyvinted.cli auth check
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Optional


def _json_out(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _load_draft(args: argparse.Namespace):
    from easyvinted.modules.listing.models import ListingDraft

    if args.draft:
        data = json.loads(Path(args.draft).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Draft file must contain a JSON object: {args.draft}")
        return ListingDraft.from_dict(data)

    if not args.title or args.price is None or not args.condition:
        raise ValueError("Specify --draft <file> or at least --title, --price and --condition")

    return ListingDraft(
        title=args.title,
        price=args.price,
        condition=args.condition,
        photos=tuple(args.photos or ()),
        description=args.description,
        brand=args.brand,
        size=args.size,
        color=args.color,
        material=args.material,
        category=args.category,
        subcategory=args.subcategory,
        item_type=args.item_type,
    )


def _load_credentials(args: argparse.Namespace):
    from easyvinted.modules.listing.models import Credentials

    email = args.email or os.getenv("VINTED_EMAIL", "")
    password = args.password or os.getenv("VINTED_PASSWORD", "")
    if not email or not password:
        raise ValueError("Vinted credentials missing: use --email/--password or VINTED_EMAIL/VINTED_PASSWORD")
    return Credentials(email=email, password=password)


def _headless(args: argparse.Namespace) -> Optional[bool]:
    return False if getattr(args, "headed", False) else None


async def cmd_publish(args: argparse.Namespace) -> int:
    from easyvinted.modules.publish.service import publish_listing

    try:
        draft = _load_draft(args)
        credentials = _load_credentials(args)
    except (OSError, ValueError) as e:
        _json_out({"success": False, "error": str(e)})
        return 1

    result = await publish_listing(draft, credentials, headless=_headless(args))
    _json_out(result.to_dict())
    return 0 if result.success else 1


async def cmd_auth(args: argparse.Namespace) -> int:
    from easyvinted.core.browser import BrowserSession
    from easyvinted.core.logger import get_logger
    from easyvinted.modules.auth.service import AuthService
    from easyvinted.modules.session.models import Session

    auth = AuthService()
    action = args.action

    if action == "status":
        _json_out(auth.store.status())
        return 0

    if action == "check":
        async with BrowserSession(headless=_headless(args)) as browser:
            session = await auth.restore_session(browser)
            logged_in = await auth.check_authenticated(browser)
        _json_out({
            "path": str(auth.store.path),
            "session_found": session is not None,
            "authenticated": logged_in,
        })
        return 0 if logged_in else 1

    if action == "setup":
        logger = get_logger()
        async with BrowserSession(headless=False) as browser:
            await auth.restore_session(browser)
            await browser.goto(auth.base_url)
            print(
                "Log in to Vinted in the opened browser window, then press Enter here to save the session...",
                file=sys.stderr,
            )
            await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)

            try:
                await browser.goto(auth.base_url)
                logged_in = await auth.marker_present(browser.page)
            except Exception as e:
                logger.warning(f"Could not verify login state: {e}")
                logged_in = False
            if not logged_in:
                logger.warning("User menu not found, the saved session may not be authenticated")

            saved = auth.store.save(Session(cookies=await browser.get_cookies()))

        _json_out({"path": str(auth.store.path), "saved": saved, "authenticated": logged_in})
        return 0 if saved else 1

    _json_out({"error": f"Unknown auth action: {action}"})
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="easyvinted",
        description="Vinted 商品发布工具",
    )
    sub = parser.add_subparsers(dest="command", help="可用命令")

    # publish
    p = sub.add_parser("publish", help="发布商品")
    p.add_argument("--draft", help="商品 JSON 文件")
    p.add_argument("--title", help="商品标题")
    p.add_argument("--price", help="售价（两位小数）")
    p.add_argument("--condition", help="成色：new_with_tags/new_without_tags/very_good/good/satisfactory")
    p.add_argument("--photos", nargs="*", default=[], help="图片 URL 列表（按顺序上传）")
    p.add_argument("--description", default=None, help="商品描述")
    p.add_argument("--brand", default=None, help="品牌")
    p.add_argument("--size", default=None, help="尺码")
    p.add_argument("--color", default=None, help="颜色")
    p.add_argument("--material", default=None, help="材质")
    p.add_argument("--category", default=None, help="一级分类")
    p.add_argument("--subcategory", default=None, help="二级分类")
    p.add_argument("--item-type", dest="item_type", default=None, help="商品类型")
    p.add_argument("--email", default=None, help="登录邮箱（默认读取 VINTED_EMAIL）")
    p.add_argument("--password", default=None, help="登录密码，可为密文（默认读取 VINTED_PASSWORD）")
    p.add_argument("--headed", action="store_true", help="显示浏览器窗口")

    # auth
    p = sub.add_parser("auth", help="会话管理")
    p.add_argument("action", choices=["setup", "status", "check"])
    p.add_argument("--headed", action="store_true", help="显示浏览器窗口（check）")

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    dispatch = {
        "publish": cmd_publish,
        "auth": cmd_auth,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        code = asyncio.run(handler(args))
    except KeyboardInterrupt:
        code = 130
    except Exception as e:
        _json_out({"error": str(e)})
        sys.exit(1)

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
