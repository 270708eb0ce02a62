"""
flatdrive REST API
"""

import argparse
import asyncio
import inspect
import logging
import os
import sys
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from flatdrive.auth import fetch_jwks
from flatdrive.config import ENV_PREFIX, StoreOptions, get_settings, validate_settings
from flatdrive.connections import drive_connections, es
from flatdrive.errors import KeyRingUnavailable
from flatdrive.store import ElasticRecordStore


async def _check_connections():
    async with drive_connections():
        if get_settings().record_store == StoreOptions.elastic and await es().ping():
            logging.info(f"Connected to elasticsearch {get_settings().elastic_host}")


def run(args):
    settings = get_settings()
    logging.info(f"Starting server at port {args.port}, debug={not args.nodebug}, store={settings.record_store.value}")
    if validate_settings():
        logging.warning(validate_settings())
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see flatdrive/config.py for more information.\n"
        f"{' ' * 26}You can also run `python -m flatdrive config` to print the current settings\n"
    )

    asyncio.run(_check_connections())
    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run("flatdrive.api:app", host="0.0.0.0", reload=not args.nodebug, port=int(args.port), log_config=log_config)


async def create_record_index(args) -> None:
    settings = get_settings()
    if settings.record_store != StoreOptions.elastic:
        logging.error(f"Record store is {settings.record_store.value}, there is no index to create")
        sys.exit(1)
    async with drive_connections():
        store = ElasticRecordStore(es(), settings.record_index)
        if args.recreate:
            logging.warning(f"Deleting record index {settings.record_index}")
            await store.delete_index()
        if await store.create_index():
            print(f"*** Created record index {settings.record_index} ***")
        else:
            print(f"*** Record index {settings.record_index} already exists ***")


async def list_keys(_args) -> None:
    url = get_settings().jwks_source
    if not url:
        logging.error("No key-publishing endpoint configured, see validate_settings")
        sys.exit(1)
    try:
        keyring = await fetch_jwks(url, timeout=get_settings().jwks_timeout)
    except KeyRingUnavailable as e:
        logging.error(str(e))
        sys.exit(1)
    print(f"{len(keyring.keys)} signing keys published at {keyring.source}")
    for kid, jwk in keyring.keys.items():
        print(f"- {kid} ({jwk.get('kty')}, {jwk.get('alg', 'no alg')})")


def create_env(args):
    if os.path.exists(".env"):
        print("*** File .env already exists, quitting ***")
        sys.exit(1)

    env = {}
    if args.jwks_url:
        env[f"{ENV_PREFIX}jwks_url"] = args.jwks_url
    if args.memory:
        env[f"{ENV_PREFIX}record_store"] = StoreOptions.memory.value
    with open(".env", "w") as f:
        for key, val in env.items():
            f.write(f"{key}={val}\n")
    os.chmod(".env", 0o600)
    print("*** Created .env file ***")


def show_config(_args):
    settings = get_settings()
    print(f"Reading settings from {settings.env_file}")
    for fieldname, fieldinfo in type(settings).model_fields.items():
        if fieldname == "env_file":
            continue
        value = getattr(settings, fieldname)
        if "secret" in fieldname or "password" in fieldname or fieldname == "events_token":
            value = value and "********"
        if doc := fieldinfo.description:
            print(f"# {doc}")
        print(f"{ENV_PREFIX}{fieldname}={'' if value is None else value}\n")
    if warning := validate_settings():
        print(f"WARNING: {warning}")


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m flatdrive")

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

    p = subparsers.add_parser("create-env", help="Create the .env file")
    p.add_argument("-j", "--jwks-url", dest="jwks_url", help="URL of the published signing keys")
    p.add_argument("--memory", action="store_true", help="Keep records in memory instead of elasticsearch")
    p.set_defaults(func=create_env)

    p = subparsers.add_parser("config", help="Print the current settings")
    p.set_defaults(func=show_config)

    p = subparsers.add_parser("create-index", help="Create the elasticsearch index holding the records")
    p.add_argument("--recreate", action="store_true", help="DANGER: delete the existing index (and all records) first")
    p.set_defaults(func=create_record_index)

    p = subparsers.add_parser("list-keys", help="Fetch and list the published signing keys")
    p.set_defaults(func=list_keys)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.INFO)
    es_logger = logging.getLogger("elasticsearch")
    es_logger.setLevel(logging.WARNING)

    if inspect.iscoroutinefunction(args.func):
        asyncio.run(args.func(args))
    else:
        args.func(args)


if __name__ == "__main__":
    main()
