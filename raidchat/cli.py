#!/usr/bin/env python3
"""raidchat CLI entrypoint."""

import argparse
import logging
import sys
from pathlib import Path

from raidchat.commands import chat as cmd_chat_module
from raidchat.commands import classify as cmd_classify_module
from raidchat.lib.config import ChatConfig, ConfigError, load_chat_config
from raidchat.lib.prompts import load_prompt_overrides


def get_config(args) -> ChatConfig:
    """Load chat.env from --config-dir and apply command-line overrides."""
    config_dir = Path(args.config_dir) if args.config_dir else None
    try:
        config = load_chat_config(config_dir)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    if getattr(args, 'api_url', None):
        config.api_base_url = args.api_url.rstrip('/')
    return config


def cmd_chat(args):
    config = get_config(args)
    config_dir = Path(args.config_dir) if args.config_dir else None
    return cmd_chat_module.cmd_chat(args, config, load_prompt_overrides(config_dir))


def cmd_classify(args):
    return cmd_classify_module.cmd_classify(args, get_config(args))


def main():
    parser = argparse.ArgumentParser(prog='raidchat', description='Chat with a RAID register')
    parser.add_argument('--config-dir', '-c', help='Directory holding chat.env and prompts.yaml')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # raidchat chat
    p_chat = subparsers.add_parser('chat', help='Interactive chat session')
    p_chat.add_argument('--project', '-p', required=True, help='Project key')
    p_chat.add_argument('--api-url', help='Override API_BASE_URL')
    p_chat.set_defaults(func=cmd_chat)

    # raidchat classify
    p_classify = subparsers.add_parser('classify', help='Show how a message is interpreted')
    p_classify.add_argument('text', nargs='+', help='Message text')
    p_classify.add_argument('--project', '-p', help='Project key for the dialogue preview')
    p_classify.set_defaults(func=cmd_classify)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
