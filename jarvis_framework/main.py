"""
Command-line front end for the voice conversation framework.
"""

import asyncio
import argparse
import os
from pathlib import Path

try:
    from .config import get_framework_config, print_config_summary
    from .config_models import validate_framework_config
    from .factory import build_orchestrator
    from .models.data_models import Message, Notification
    from .orchestrator import ConversationOrchestrator
    from .utils.logging_config import setup_logging
    from .utils.settings_store import JsonSettingsStore, save_webhook_url
except ImportError:
    from jarvis_framework.config import get_framework_config, print_config_summary
    from jarvis_framework.config_models import validate_framework_config
    from jarvis_framework.factory import build_orchestrator
    from jarvis_framework.models.data_models import Message, Notification
    from jarvis_framework.orchestrator import ConversationOrchestrator
    from jarvis_framework.utils.logging_config import setup_logging
    from jarvis_framework.utils.settings_store import JsonSettingsStore, save_webhook_url


CHAT_HELP = """Commands:
  /mic        toggle the microphone (single mode)
  /start      start a continuous conversation
  /stop       stop the conversation
  /mode       switch between single and continuous mode
  /interrupt  stop JARVIS mid-reply
  /clear      clear the conversation
  /status     show current status
  /quit       exit
Anything else is sent as a typed message."""


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="jarvis-voice",
        description="JARVIS voice/text conversational assistant",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--log-level', default=os.getenv("LOG_LEVEL", "WARNING"),
                        help='Log level (default: LOG_LEVEL env or WARNING)')
    parser.add_argument('--log-file', type=Path, default=None, help='Also write logs to this file')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    chat = subparsers.add_parser('chat', help='Interactive conversation (voice and text)')
    chat.add_argument('--continuous', action='store_true', help='Start in continuous mode')

    subparsers.add_parser('status', help='Show orchestrator status')
    subparsers.add_parser('config', help='Show configuration')

    webhook = subparsers.add_parser('set-webhook', help='Store a custom webhook URL')
    webhook.add_argument('url', help='http(s) webhook URL')

    return parser


def _print_message(message: Message) -> None:
    speaker = "You" if message.role.value == "user" else "JARVIS"
    print(f"[{message.timestamp.strftime('%H:%M:%S')}] {speaker}: {message.content}")


def _print_notification(notification: Notification) -> None:
    print(f"⚠️  {notification.title}: {notification.description}")


def _print_status(orchestrator: ConversationOrchestrator) -> None:
    status = orchestrator.get_status()
    state = status['state']
    print(f"Status:        {state['status']}")
    print(f"Mode:          {state['mode']} ({'active' if state['active'] else 'inactive'})")
    print(f"Messages:      {status['messages']}")
    print(f"Voice support: {'Active' if status['capture_available'] else 'Unavailable'}")
    print(f"Errors:        {status['errors']['total_errors']}")
    print(orchestrator.status_hint())


async def cmd_chat(orchestrator: ConversationOrchestrator) -> None:
    """Run the interactive REPL until /quit or EOF."""
    printed = 0

    def on_state(_snapshot):
        nonlocal printed
        messages = orchestrator.get_messages()
        if len(messages) < printed:
            printed = 0
        for message in messages[printed:]:
            _print_message(message)
        printed = len(messages)

    orchestrator.add_state_listener(on_state)
    orchestrator.add_notification_listener(_print_notification)

    if not orchestrator.is_capture_available:
        print("Speech recognition is not available here. You can still chat using text input.")
    print(CHAT_HELP)

    loop = asyncio.get_running_loop()
    commands = {
        '/mic': orchestrator.mic_toggle,
        '/start': orchestrator.start_conversation,
        '/stop': orchestrator.stop_conversation,
        '/mode': orchestrator.toggle_mode,
        '/interrupt': orchestrator.interrupt,
        '/clear': orchestrator.clear,
    }

    while True:
        try:
            line = await loop.run_in_executor(None, input, "> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue
        if line in ('/quit', '/exit'):
            break
        if line == '/status':
            _print_status(orchestrator)
        elif line == '/help':
            print(CHAT_HELP)
        elif line in commands:
            await commands[line]()
            print(orchestrator.status_hint())
        elif line.startswith('/'):
            print(f"Unknown command: {line}")
        else:
            await orchestrator.submit_text(line)


def cmd_config() -> None:
    print("\n" + "=" * 60)
    print("Configuration")
    print("=" * 60 + "\n")
    print_config_summary()


def cmd_set_webhook(url: str) -> int:
    config = get_framework_config()
    store = JsonSettingsStore(Path(config['settings']['path']))
    try:
        save_webhook_url(store, url)
    except ValueError as e:
        print(f"❌ {e}")
        return 1
    print("✅ Webhook URL updated successfully! JARVIS will now use your new webhook.")
    return 0


async def async_main(args: argparse.Namespace) -> int:
    config = get_framework_config()
    if args.command == 'chat' and args.continuous:
        config['conversation']['initial_mode'] = 'continuous'
    validate_framework_config(config)

    orchestrator = build_orchestrator(config)
    if not await orchestrator.initialize():
        print("❌ Failed to initialize orchestrator")
        await orchestrator.cleanup()
        return 1

    try:
        if args.command == 'chat':
            await cmd_chat(orchestrator)
        elif args.command == 'status':
            _print_status(orchestrator)
    finally:
        await orchestrator.cleanup()
    return 0


def main() -> int:
    """Synchronous entry point."""
    parser = create_parser()
    args = parser.parse_args()

    try:
        setup_logging(level=args.log_level, log_file=args.log_file)
    except Exception as e:
        print(f"⚠️  Failed to setup logging: {e}")

    if not args.command:
        parser.print_help()
        return 0
    if args.command == 'config':
        cmd_config()
        return 0
    if args.command == 'set-webhook':
        return cmd_set_webhook(args.url)

    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
        return 130
    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
