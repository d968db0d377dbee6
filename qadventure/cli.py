"""
Quantum Adventure CLI - Text-mode front end for the engine.

Usage:
    qadventure play [--seed N] [--precision single|double]
    qadventure serve

In play mode every command resolves one tick:
    select X Y     select or deselect a tile
    switch         swap the two selected amplitudes   (key P)
    mix            interfere the two selected tiles   (key O)
    measure        measure against the selected device tile (key M)
    clear          drop the selection
    show           print the world
    quit
"""

import argparse
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Quantum Adventure - Quantum State Puzzle Engine",
        prog="qadventure",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play the first level in the terminal")
    play_parser.add_argument("--seed", type=int, default=None, help="Seed for measurements")
    play_parser.add_argument(
        "--precision", choices=["single", "double"], default=None,
        help="Amplitude precision",
    )

    # Serve command
    subparsers.add_parser("serve", help="Show how to run the HTTP API")

    args = parser.parse_args(argv)

    if args.command == "play":
        cmd_play(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_play(args, stdin=None, stdout=None):
    """Run the interactive text loop."""
    from .config import EngineConfig
    from .engine_core.action import Action
    from .engine_core.coords import GridPos
    from .input import InputAdapter, Key
    from .logging_config import setup_logging
    from .session import SessionManager, GameLoop

    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    overrides = {}
    if args.precision:
        overrides["precision"] = args.precision
    if args.log_level:
        overrides["log_level"] = args.log_level
    config = EngineConfig.from_env(**overrides)
    setup_logging(config.log_level)

    manager = SessionManager(config=config)
    session = manager.create_session(seed=args.seed)
    loop = GameLoop(session)
    adapter = InputAdapter()
    loop.tick()

    print(f"Session {session.session_id}", file=stdout)
    print(render_world(session.world), file=stdout)

    for line in stdin:
        parts = line.split()
        if not parts:
            continue
        command = parts[0].lower()

        if command in {"quit", "exit", "q"}:
            break
        if command == "show":
            print(render_world(session.world), file=stdout)
            continue

        action = None
        if command == "select" and len(parts) == 3:
            try:
                action = Action.select(GridPos(int(parts[1]), int(parts[2])))
            except ValueError:
                print("Usage: select X Y", file=stdout)
                continue
        elif command == "clear":
            action = Action.clear_selection()
        elif command in {"switch", "mix", "measure"}:
            key = {"switch": Key.SWITCH, "mix": Key.MIX, "measure": Key.MEASURE}[command]
            action = adapter.on_key_press(key.value, session.world)
        else:
            print(f"Unknown command: {line.strip()}", file=stdout)
            continue

        if action is not None:
            loop.submit(action)
        result = loop.tick()
        for change in result.state_changes:
            print(f"  {change}", file=stdout)
        for event in result.events:
            print(f"  * {type(event).__name__}", file=stdout)
        print(render_world(session.world), file=stdout)

    manager.end_session(session.session_id)


def cmd_serve(args):
    """Explain how to start the API server."""
    print("Run the API with an ASGI server, for example:")
    print("    uvicorn qadventure.api.app:app --reload")


def render_world(world) -> str:
    """Plain-text dump of selections, states and doors."""
    lines = []
    selected = ", ".join(f"({p.x},{p.y})" for p in world.selections) or "none"
    lines.append(f"Selected: {selected}")
    for owner in world.owners.values():
        lines.append(f"{owner.owner_id} [{owner.role.value}] total={owner.state.norm_sqr():.4f}")
        for pos, value in sorted(owner.state.items(), key=lambda item: (item[0].y, item[0].x)):
            value = complex(value)
            lines.append(f"    ({pos.x},{pos.y}): {value.real:+.4f}{value.imag:+.4f}i")
    for door in world.doors.values():
        status = "closed" if door.blocking else "open"
        lines.append(f"door {door.door_id} at ({door.position.x},{door.position.y}): {status}")
    return "\n".join(lines)


if __name__ == "__main__":
    main()
