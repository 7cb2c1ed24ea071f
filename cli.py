#!/usr/bin/env python3
import argparse
import json
import sys

import requests
import yaml

from pipetemplate.errors import SpinnakerAPIError
from pipetemplate.orchestrator import run_convert, run_convert_file, run_publish
from pipetemplate.utils import get_logger, redact_secrets

logger = get_logger("pipetemplate.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pipetemplate", description="Convert Spinnaker pipelines into pipeline templates")
    parser.add_argument("--config", help="Path to YAML config")
    # client settings; each falls back to its SPINNAKER_* env var
    parser.add_argument("--endpoint", help="Spinnaker API base URL (SPINNAKER_API)")
    parser.add_argument("--access-token", dest="access_token", help="JWT or Basic credential (SPINNAKER_ACCESS_TOKEN)")
    parser.add_argument("--cert-path", dest="cert_path", help="PEM client certificate (SPINNAKER_CLIENT_CERT)")
    parser.add_argument("--key-path", dest="key_path", help="PEM client key (SPINNAKER_CLIENT_KEY)")
    parser.add_argument("--insecure", action="store_true", default=None, help="Skip server certificate verification")
    parser.add_argument("--api-session", dest="session_cookie", help="SESSION cookie value (SPINNAKER_API_SESSION)")
    parser.add_argument("--client-timeout", dest="timeout", type=float, help="HTTP timeout in seconds")

    sub = parser.add_subparsers(dest="command", required=True)

    conv = sub.add_parser("convert", help="Fetch a pipeline and convert it to a template")
    conv.add_argument("application")
    conv.add_argument("pipeline", help="Pipeline name or config ID")
    conv.add_argument("-o", "--output", help="Output file (default: stdout)")
    conv.add_argument("--no-header", dest="header", action="store_false", help="Omit the generated-by banner")

    convf = sub.add_parser("convert-file", help="Convert a saved pipeline config (JSON/YAML)")
    convf.add_argument("input")
    convf.add_argument("-o", "--output", help="Output file (default: stdout)")
    convf.add_argument("--no-header", dest="header", action="store_false", help="Omit the generated-by banner")

    pub = sub.add_parser("publish", help="Publish a template file")
    pub.add_argument("template")

    parser.set_defaults(header=None)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    flags = {
        "endpoint": args.endpoint,
        "access_token": args.access_token,
        "cert_path": args.cert_path,
        "key_path": args.key_path,
        "insecure": args.insecure,
        "session_cookie": args.session_cookie,
        "timeout": args.timeout,
    }

    try:
        if args.command == "convert":
            run_convert(args.application, args.pipeline, config_path=args.config, flags=flags,
                        output=args.output, header=args.header)
        elif args.command == "convert-file":
            run_convert_file(args.input, config_path=args.config, output=args.output, header=args.header)
        elif args.command == "publish":
            ref = run_publish(args.template, config_path=args.config, flags=flags)
            print(json.dumps(ref, ensure_ascii=False))
    except (SpinnakerAPIError, requests.RequestException) as e:
        logger.error("%s", redact_secrets(str(e), args.access_token))
        return 1
    except (ValueError, OSError, yaml.YAMLError) as e:
        logger.error("%s", redact_secrets(str(e), args.access_token))
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
