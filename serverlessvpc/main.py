#!/usr/bin/env python3
"""
serverlessvpc - VPC name resolver for serverless services

Looks up the VPC, subnets and security groups named under custom.vpc in a
serverless service file and writes their ids onto every function that should
run inside that VPC. Run it before packaging.

PREREQUISITES:
    AWS credentials allowed to call ec2:DescribeVpcs, ec2:DescribeSubnets and
    ec2:DescribeSecurityGroups.

Usage:
    # Patch ./serverless.yml and print the result
    serverlessvpc

    # Explicit service file, stage and output path
    serverlessvpc -c ./api/serverless.yml -s prod -o serverless.patched.yml

    # Different region / profile than the service's provider block
    serverlessvpc -r eu-west-1 -p deploy
"""

import argparse
import logging
import sys
from pathlib import Path

from .errors import VpcPluginError
from .inventory import DEFAULT_MAX_ATTEMPTS, EC2Inventory
from .service_file import dump_service, find_service_file, load_service_file, write_service_file
from .updater import VpcConfigUpdater


def _provider_setting(service: dict, key: str):
    provider = service.get("provider")
    if isinstance(provider, dict):
        return provider.get(key)
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serverlessvpc",
        description="Resolve VPC, subnet and security group names into ids for serverless functions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Service file:
    custom:
      vpc:
        vpcName: my-vpc
        subnetNames: [private-a, private-b]
        securityGroupNames: [lambda-sg]
        disable: false   # true: only patch functions whose vpc.vpcName matches

Examples:
    serverlessvpc -c serverless.yml -o serverless.patched.yml
    serverlessvpc -c serverless.yml -s prod --preserve-order
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        help="Path to the service file. Default: serverless.yml/.yaml/.json in the current directory",
        default=None,
    )

    parser.add_argument(
        "-o",
        "--output",
        help="Write the patched service here instead of printing it to stdout",
        default=None,
    )

    parser.add_argument("-s", "--stage", help="Value for ${opt:stage}", default=None)

    parser.add_argument(
        "-r",
        "--region",
        help="AWS region. Default: provider.region, then the AWS environment",
        default=None,
    )

    parser.add_argument(
        "-p",
        "--aws-profile",
        help="AWS profile. Default: provider.profile, then the AWS environment",
        default=None,
    )

    parser.add_argument(
        "--max-attempts",
        type=int,
        default=DEFAULT_MAX_ATTEMPTS,
        help=f"Attempts per EC2 call before giving up. Default: {DEFAULT_MAX_ATTEMPTS}",
    )

    parser.add_argument(
        "--preserve-order",
        action="store_true",
        help="Order subnet and security group ids like the names in custom.vpc instead of EC2's order",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # botocore stays at WARNING so --verbose does not dump request traffic
    logging.getLogger("serverlessvpc").setLevel(logging.DEBUG if args.verbose else logging.NOTSET)

    # Locate the service file
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Service file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
    else:
        config_path = find_service_file(Path.cwd())
        if config_path is None:
            print("Error: No serverless.yml found in the current directory", file=sys.stderr)
            sys.exit(1)

    try:
        options = {"stage": args.stage, "region": args.region}
        service = load_service_file(config_path, options=options)

        region = args.region or _provider_setting(service, "region")
        profile = args.aws_profile or _provider_setting(service, "profile")

        if args.verbose:
            print(f"Loaded {config_path}")
            print(f"Region: {region or '(AWS default)'}, profile: {profile or '(AWS default)'}")

        inventory = EC2Inventory(region=region, profile=profile, max_attempts=args.max_attempts)
        updater = VpcConfigUpdater(inventory, preserve_request_order=args.preserve_order)
        functions = updater.update_vpc_config(service)

        if args.verbose:
            print(f"VPC config after update ({len(functions)} functions):")
            for name, function in functions.items():
                vpc = function.get("vpc") if isinstance(function, dict) else None
                print(f"  - {name}: {vpc if vpc is not None else 'no vpc'}")

        if args.output:
            output_path = write_service_file(service, args.output)
            print(f"Patched service written: {output_path.absolute()}")
        else:
            dump_service(service, sys.stdout)

    except VpcPluginError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
