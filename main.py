import sys

from rich.pretty import pprint

from commandant import *

__prog__ = "commandant-demo"

greet = (
    Command("greet", "say hello to someone", "1.0.0", shell=True, fancy=True, colorful=True)
    .argument("who", "the person to greet").required()
    .option("times", "n", "how many greetings").accepts("integer")
    .option("loud", "l", "shout the greeting")
)

handler = CommandHandler(strict=True, shell=True, colorful=True).add_commands(
    greet,
    Command("quit", "leave the demo", shell=True),
)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        greet.print_help()
    else:
        pprint(handler.parse(" ".join(sys.argv[1:])))
