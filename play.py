import argparse
import asyncio
import json
import sys
from typing import List

import chess
import websockets

from relaychess.client.board_surface import BoardSurface, Presenter, Cue


class TerminalPresenter(Presenter):
    """Prints the game to the terminal."""

    def __init__(self):
        self.history = ""

    def render_position(self, board: chess.Board, highlights: List[str]):
        print("\n" + "="*40)
        print(board)
        print("="*40)
        print(f"FEN: {board.fen()}")
        print(f"Turn: {'White' if board.turn == chess.WHITE else 'Black'}")
        if highlights:
            print(f"Targets: {', '.join(highlights)}")
        if board.is_check():
            print("CHECK!")
        print()

    def append_history(self, text: str):
        self.history += text
        print(self.history.rstrip("\n").splitlines()[-1])

    def clear_history(self):
        self.history = ""

    def play_cue(self, cue: Cue):
        if cue in (Cue.CHECK, Cue.ILLEGAL, Cue.GAME_END):
            print("\a", end="", flush=True)

    def show_promotion_choice(self, square: str, color: chess.Color):
        print(f"Promotion on {square}: type q, r, b or n")

    def show_timers(self, white: str, black: str):
        print(f"\rWhite {white} | Black {black}", end="", flush=True)

    def show_message(self, message: str, final: bool = False):
        print(f"\n{message}")


async def read_events(ws, surface: BoardSurface, done: asyncio.Event):
    async for raw in ws:
        msg = json.loads(raw)
        surface.handle(msg.get("event"), msg.get("data"))
        if msg.get("event") == "gameover":
            done.set()
            return
    done.set()


async def read_input(surface: BoardSurface, done: asyncio.Event):
    while not done.is_set():
        text = (await asyncio.to_thread(input, "Enter your move (e.g., 'e2e4'): ")).strip()

        if text.lower() in ['quit', 'exit', 'q'] and surface.pending_promotion is None:
            done.set()
            return
        if text.lower() == 'resign':
            surface.send("resignGame", None)
        elif text.lower() == 'reset':
            surface.send("resetGame", None)
        elif text.lower() == 'retry':
            surface.send("retryEngine", None)
        elif surface.pending_promotion is not None:
            surface.choose_promotion(text.lower())
        elif text:
            surface.submit_uci(text)


async def play(url: str):
    outgoing: asyncio.Queue = asyncio.Queue()
    done = asyncio.Event()

    def send(event: str, data=None):
        outgoing.put_nowait({"event": event, "data": data})

    surface = BoardSurface(TerminalPresenter(), send)

    async with websockets.connect(url) as ws:
        async def write_events():
            while True:
                msg = await outgoing.get()
                await ws.send(json.dumps(msg))

        surface.start()
        tasks = [
            asyncio.create_task(read_events(ws, surface, done)),
            asyncio.create_task(write_events()),
        ]
        input_task = asyncio.create_task(read_input(surface, done))
        await done.wait()
        for task in tasks + [input_task]:
            task.cancel()


def main():
    parser = argparse.ArgumentParser(description='Play chess against the remote engine from a terminal')
    parser.add_argument('--host', type=str, default='localhost',
                        help='Server host')
    parser.add_argument('--port', type=int, default=3000,
                        help='Server port')
    parser.add_argument('--depth', type=int, default=10,
                        help='Engine search depth (1-15)')

    args = parser.parse_args()
    url = f"ws://{args.host}:{args.port}/ws?depth={args.depth}"

    print("\n" + "="*40)
    print("relaychess - COMMAND LINE EDITION")
    print("="*40)
    print("You are playing as: White")
    print(f"Engine depth: {args.depth}")
    print("\nCommands: 'resign', 'reset', 'retry', 'quit'")
    print("Move format: 'e2e4' (UCI)")
    print("="*40)

    try:
        asyncio.run(play(url))
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)
    except OSError as e:
        print(f"Error: could not connect to {url}: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
