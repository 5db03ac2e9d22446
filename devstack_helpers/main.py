from __future__ import annotations

import argparse
import json
import logging
from typing import Optional

from .config import load_stack_config
from .context import StackCtx
from .lib.git import git_clone
from .lib.images import upload_image
from .lib.ini import inicomment, iniget, iniset, iniuncomment
from .lib.net import ping_check, ssh_check
from .lib.pkg import install_package
from .lib.screen import service_check
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .osinfo import get_rootwrap_location
from .packages import get_packages
from .state_store import ensure_defaults, load_state, record_services, save_state, services_from_state

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "stack.yaml"
DEFAULT_STATE_PATH = ".devstack-helpers/state.json"


def cmd_services(ctx: StackCtx, args: argparse.Namespace) -> int:
    print(ctx.services.to_string())
    return 0


def cmd_enable(ctx: StackCtx, args: argparse.Namespace) -> int:
    print(ctx.enable_service(*args.names).to_string())
    return 0


def cmd_disable(ctx: StackCtx, args: argparse.Namespace) -> int:
    print(ctx.disable_service(*args.names).to_string())
    return 0


def cmd_disable_all(ctx: StackCtx, args: argparse.Namespace) -> int:
    ctx.disable_all_services()
    return 0


def cmd_is_enabled(ctx: StackCtx, args: argparse.Namespace) -> int:
    return 0 if ctx.is_service_enabled(*args.names) else 1


def cmd_os_info(ctx: StackCtx, args: argparse.Namespace) -> int:
    info = ctx.os.as_dict()
    if args.field:
        print(info.get(args.field, ""))
    else:
        print(json.dumps(info, indent=2, sort_keys=True))
    return 0


def cmd_rootwrap(ctx: StackCtx, args: argparse.Namespace) -> int:
    print(get_rootwrap_location(ctx.os, args.module))
    return 0


def cmd_packages(ctx: StackCtx, args: argparse.Namespace) -> int:
    package_dir = args.dir if args.dir is not None else ctx.cfg.package_dir
    packages = list(get_packages(ctx.services, package_dir, ctx.os.distro))
    for p in packages:
        print(p)
    if args.install:
        install_package(ctx, packages)
    return 0


def cmd_ini(ctx: StackCtx, args: argparse.Namespace) -> int:
    if args.action == "get":
        value = iniget(args.file, args.section, args.option)
        if value is None:
            return 1
        print(value)
    elif args.action == "set":
        if args.value is None:
            raise ValueError("ini set needs a value")
        if ctx.dry_run:
            logger.info("Would set [%s] %s in %s", args.section, args.option, args.file)
        else:
            iniset(args.file, args.section, args.option, args.value)
    elif args.action == "comment":
        inicomment(args.file, args.section, args.option)
    else:
        iniuncomment(args.file, args.section, args.option)
    return 0


def cmd_git_clone(ctx: StackCtx, args: argparse.Namespace) -> int:
    git_clone(ctx.cfg, args.remote, args.dest, args.ref, dry_run=ctx.dry_run)
    return 0


def cmd_upload_image(ctx: StackCtx, args: argparse.Namespace) -> int:
    for image_id in upload_image(ctx, args.url, args.token):
        print(image_id)
    return 0


def cmd_service_check(ctx: StackCtx, args: argparse.Namespace) -> int:
    return 1 if service_check(ctx) else 0


def cmd_ping_check(ctx: StackCtx, args: argparse.Namespace) -> int:
    ping_check(args.ip, float(args.timeout), expected=not args.expect_down, netns=args.netns)
    return 0


def cmd_ssh_check(ctx: StackCtx, args: argparse.Namespace) -> int:
    ssh_check(args.ip, args.key, args.user, float(args.timeout), netns=args.netns)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="devstack-helpers")
    p.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Stack settings (yaml)")
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Where enabled services are kept (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to log file")
    p.add_argument("--dry-run", action="store_true", help="Log commands instead of running them")
    p.add_argument("-v", "--verbose", action="store_true")

    sub = p.add_subparsers(dest="subcmd", required=True)

    sp = sub.add_parser("services", help="Print enabled services")
    sp.set_defaults(func=cmd_services)

    # "+" as the option prefix so that -name reaches enable as a negation.
    sp = sub.add_parser("enable", help="Enable services (-name disables)", prefix_chars="+")
    sp.add_argument("names", nargs="+")
    sp.set_defaults(func=cmd_enable)

    sp = sub.add_parser("disable", help="Disable services")
    sp.add_argument("names", nargs="+")
    sp.set_defaults(func=cmd_disable)

    sp = sub.add_parser("disable-all", help="Disable every service")
    sp.set_defaults(func=cmd_disable_all)

    sp = sub.add_parser("is-enabled", help="Exit 0 if any of the services is enabled")
    sp.add_argument("names", nargs="+")
    sp.set_defaults(func=cmd_is_enabled)

    sp = sub.add_parser("os-info", help="Describe the host OS")
    sp.add_argument("--field", default=None, help="vendor|release|update|package|codename|distro")
    sp.set_defaults(func=cmd_os_info)

    sp = sub.add_parser("rootwrap", help="Print the rootwrap path for a module")
    sp.add_argument("module")
    sp.set_defaults(func=cmd_rootwrap)

    sp = sub.add_parser("packages", help="List distro packages for the enabled services")
    sp.add_argument("--dir", default=None, help="Package manifest directory")
    sp.add_argument("--install", action="store_true", help="Install them as well")
    sp.set_defaults(func=cmd_packages)

    sp = sub.add_parser("ini", help="Read or edit an ini file")
    sp.add_argument("action", choices=["get", "set", "comment", "uncomment"])
    sp.add_argument("file")
    sp.add_argument("section")
    sp.add_argument("option")
    sp.add_argument("value", nargs="?", default=None)
    sp.set_defaults(func=cmd_ini)

    sp = sub.add_parser("git-clone", help="Clone or refresh a repository")
    sp.add_argument("remote")
    sp.add_argument("dest")
    sp.add_argument("ref")
    sp.set_defaults(func=cmd_git_clone)

    sp = sub.add_parser("upload-image", help="Download an image and register it with glance")
    sp.add_argument("url")
    sp.add_argument("--token", required=True)
    sp.set_defaults(func=cmd_upload_image)

    sp = sub.add_parser("service-check", help="Report services that failed to start")
    sp.set_defaults(func=cmd_service_check)

    sp = sub.add_parser("ping-check", help="Wait for a host to answer ping")
    sp.add_argument("ip")
    sp.add_argument("--timeout", default="60")
    sp.add_argument("--expect-down", action="store_true", help="Wait for the host to stop answering")
    sp.add_argument("--netns", default=None)
    sp.set_defaults(func=cmd_ping_check)

    sp = sub.add_parser("ssh-check", help="Wait for a host to accept ssh")
    sp.add_argument("ip")
    sp.add_argument("--key", required=True)
    sp.add_argument("--user", default="cirros")
    sp.add_argument("--timeout", default="60")
    sp.add_argument("--netns", default=None)
    sp.set_defaults(func=cmd_ssh_check)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(
        log_path=args.log,
        level=logging.DEBUG if args.verbose else logging.INFO,
        also_console=args.verbose,
    )

    state: dict = {}
    ctx: Optional[StackCtx] = None
    try:
        cfg = load_stack_config(args.config)
        state = ensure_defaults(load_state(args.state), enabled_services=cfg.enabled_services)
        ctx = StackCtx(cfg=cfg, services=services_from_state(state), dry_run=bool(args.dry_run))
        return int(args.func(ctx, args))
    except (RuntimeError, ValueError) as e:
        logger.error("%s failed: %s", args.subcmd, e)
        state.setdefault("errors", []).append({"command": args.subcmd, "error": str(e)})
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        # An unreadable config or state file is left as it is.
        if ctx is not None:
            record_services(state, ctx.services)
            save_state(args.state, state)


if __name__ == "__main__":
    raise SystemExit(main())
