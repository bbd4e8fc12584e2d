import json
import sys
from typing import Dict, List, Optional, Tuple

from cluster_core import ApiCall, Configuration, SearchClientError

METHODS = ("get", "post", "put", "patch", "delete")


def parse_params(args: List[str]) -> Tuple[Optional[str], Dict[str, object]]:
    """Split trailing arguments into an optional JSON body and ``--param k=v`` pairs."""
    body = None
    params: Dict[str, object] = {}
    index = 0
    while index < len(args):
        arg = args[index]
        if arg == "--param":
            if index + 1 >= len(args) or "=" not in args[index + 1]:
                raise ValueError("--param expects key=value")
            key, value = args[index + 1].split("=", 1)
            if value in ("true", "false"):
                params[key] = value == "true"
            else:
                params[key] = value
            index += 2
            continue
        if body is not None:
            raise ValueError(f"Unexpected argument: {arg}")
        body = arg
        index += 1
    return body, params


def send_request(config_path: str, method: str, path: str, extra: List[str]) -> int:
    body_arg, params = parse_params(extra)
    body = json.loads(body_arg) if body_arg is not None else None

    config = Configuration.from_file(config_path)
    with ApiCall(config) as api:
        try:
            if method == "get":
                result = api.get(path, params=params)
            elif method == "delete":
                result = api.delete(path, params=params)
            else:
                result = getattr(api, method)(path, body, params=params)
        except SearchClientError as exc:
            print(f"Request error ({type(exc).__name__}): {exc}")
            return 1
        finally:
            if config.verbose:
                api.hooks.drain(timeout=5)
                print(f"[Client] hooks: {json.dumps(api.hooks.snapshot(), sort_keys=True)}", flush=True)

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


def usage() -> None:
    print("Usage: python client.py <config.json> <get|post|put|patch|delete> <path> [json-body] [--param key=value ...]")


if __name__ == "__main__":
    if len(sys.argv) < 4:
        usage()
        sys.exit(1)

    config_arg = sys.argv[1]
    command = sys.argv[2].lower()
    path_arg = sys.argv[3]

    if command not in METHODS:
        print(f"Unknown command: {command}")
        usage()
        sys.exit(1)

    try:
        sys.exit(send_request(config_arg, command, path_arg, sys.argv[4:]))
    except (ValueError, FileNotFoundError) as exc:
        print(f"Invalid arguments: {exc}")
        sys.exit(1)
