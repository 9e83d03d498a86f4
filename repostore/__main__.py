"""
repostore REST API
"""

import argparse
import asyncio
import inspect
import logging
import os
import sys
from pathlib import Path

import uvicorn
from pydantic.fields import FieldInfo
from uvicorn.config import LOGGING_CONFIG

from repostore.config import ENV_PREFIX, get_settings, validate_settings
from repostore.connections import content_stores


async def check_connection(_args) -> None:
    settings = get_settings()
    if warning := validate_settings():
        logging.error(warning)
        sys.exit(1)
    async with content_stores(settings) as stores:
        ok = True
        for name, transport in [("photos", stores.photos.transport), ("project files", stores.project_files.transport)]:
            if await transport.ping():
                logging.info(f"Connected to {transport.name} ({name}, branch {transport.branch})")
            else:
                logging.error(f"Cannot connect to {transport.name} ({name}) at {settings.github_api_url}")
                ok = False
    if not ok:
        sys.exit(1)


def run(args):
    settings = get_settings()
    logging.info(f"Starting server at port {args.port}, debug={not args.nodebug}")
    logging.info(
        f"Storing photos in {settings.github_owner}/{settings.photo_repo} and "
        f"project files in {settings.github_owner}/{settings.files_repo} (branch {settings.github_branch})"
    )
    if validate_settings():
        logging.warning(validate_settings())
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see repostore/config.py for more information.\n"
        f"{' ' * 26}You can also run `python -m repostore config` to create the .env settings file interactively\n"
    )

    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run("repostore.api:app", host="0.0.0.0", reload=not args.nodebug, port=int(args.port), log_config=log_config)


def base_env():
    return dict(
        repostore_github_owner="",
        repostore_github_token="",
        repostore_github_branch="main",
    )


def create_env(args):
    if os.path.exists(".env"):
        print("*** File .env already exists, quitting ***")
        sys.exit(1)

    env = base_env()
    if args.owner:
        env["repostore_github_owner"] = args.owner
    with open(".env", "w") as f:
        for key, val in env.items():
            f.write(f"{key}={val}\n")
    os.chmod(".env", 0o600)
    print("*** Created .env file ***")


def config_repostore(args):
    settings = get_settings()
    # Not a useful entry in an actual env_file
    print(f"Reading/writing settings from {settings.env_file}")
    for fieldname, fieldinfo in type(settings).model_fields.items():
        if fieldname == "env_file":
            continue

        value = getattr(settings, fieldname)
        value = menu(fieldname, fieldinfo, value, secret=fieldname.endswith("token"))
        if value is ABORTED:
            return
        if value is not UNCHANGED:
            setattr(settings, fieldname, value)

    with settings.env_file.open("w") as f:
        for fieldname, fieldinfo in type(settings).model_fields.items():
            if fieldname == "env_file":
                continue
            value = getattr(settings, fieldname)
            if doc := fieldinfo.description:
                f.write(f"# {doc}\n")
            if value is None:
                f.write(f"#{ENV_PREFIX}{fieldname}=\n\n")
            else:
                f.write(f"{ENV_PREFIX}{fieldname}={value}\n\n")
    os.chmod(settings.env_file, 0o600)
    print(f"*** Written {bold('.env')} file to {settings.env_file} ***")


def bold(x):
    return "\033[1m" + str(x) + "\033[0m"


ABORTED = object()
UNCHANGED = object()


def menu(fieldname: str, fieldinfo: FieldInfo, value, secret=False):
    print(f"\n{bold(fieldname)}: {fieldinfo.description}")
    shown = "***" if secret and value else value
    print(f"The current value for {bold(fieldname)} is {bold(shown)}.")
    try:
        value = input("Enter a new value, press [enter] to leave unchanged, or press [control+c] to abort: ")
    except KeyboardInterrupt:
        return ABORTED
    if not value.strip():
        return UNCHANGED
    return value


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m repostore")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the backend API in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (useful for testing downstream clients)",
    )
    p.add_argument("-p", "--port", help="Port", default=5000)
    p.set_defaults(func=run)

    p = subparsers.add_parser("create-env", help="Create an .env file skeleton")
    p.add_argument("-o", "--owner", help="The GitHub user or organization owning the storage repositories.")
    p.set_defaults(func=create_env)

    p = subparsers.add_parser("config", help="Configure repostore settings in an interactive menu.")
    p.set_defaults(func=config_repostore)

    p = subparsers.add_parser("check", help="Check that both storage repositories can be reached")
    p.set_defaults(func=check_connection)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.INFO)
    httpx_logger = logging.getLogger("httpx")
    httpx_logger.setLevel(logging.WARNING)

    if inspect.iscoroutinefunction(args.func):
        asyncio.run(args.func(args))
    else:
        args.func(args)


if __name__ == "__main__":
    main()
