from __future__ import annotations

import random
import re
from typing import Sequence

from .errors import UsageError
from .types import Embed, EmbedField

RULES_TEXT = (
    "**Server Rules:**\n"
    "1. Be respectful and kind to all members.\n"
    "2. No spamming or excessive use of caps.\n"
    "3. Keep discussions civil and constructive.\n"
    "4. No NSFW content.\n"
    "5. Follow Discord's Terms of Service."
)

RPS_CHOICES = ("rock", "paper", "scissors")
_RPS_BEATS = {"rock": "scissors", "paper": "rock", "scissors": "paper"}

EIGHT_BALL_RESPONSES = (
    "It is certain.",
    "It is decidedly so.",
    "Without a doubt.",
    "Yes, definitely.",
    "You may rely on it.",
    "As I see it, yes.",
    "Most likely.",
    "Outlook good.",
    "Yes.",
    "Signs point to yes.",
    "Reply hazy, try again.",
    "Ask again later.",
    "Better not tell you now.",
    "Cannot predict now.",
    "Concentrate and ask again.",
    "Don't count on it.",
    "My reply is no.",
    "My sources say no.",
    "Outlook not so good.",
    "Very doubtful.",
)

FACTS = (
    "A group of owls is called a parliament.",
    "Honey never spoils.",
    "The shortest war in history lasted 38 to 45 minutes.",
    "Octopuses have three hearts.",
    'A "jiffy" is an actual unit of time: 1/100th of a second.',
    "The average person walks the equivalent of three times around the world in a lifetime.",
    "Bananas are berries, but strawberries aren't.",
    "The Earth's core is as hot as the surface of the sun.",
    "A crocodile cannot stick its tongue out.",
    "It is impossible for most people to lick their own elbow.",
    "A cat has 32 muscles in each ear.",
    "Slugs have four noses.",
)

WOULD_YOU_RATHER = (
    "Would you rather be able to fly or be invisible?",
    "Would you rather have unlimited money or unlimited wishes?",
    "Would you rather fight 100 duck-sized horses or one horse-sized duck?",
    "Would you rather live without music or live without movies?",
    "Would you rather be able to talk to animals or speak all human languages?",
    "Would you rather always be 10 minutes late or always be 20 minutes early?",
    "Would you rather have a constantly refilling snack bowl or a constantly refilling drink cup?",
    "Would you rather be a master of every musical instrument or a master of every sport?",
    "Would you rather have a rewind button or a pause button in your life?",
    "Would you rather be able to teleport anywhere or be able to read minds?",
)

_XDY = re.compile(r"^(\d+)d(\d+)$", re.IGNORECASE)
MAX_DICE = 10
MAX_SIDES = 100


def roll_die(args: Sequence[str], rng: random.Random) -> str:
    try:
        sides = int(args[0]) if args else 0
    except ValueError:
        sides = 0
    if sides <= 0:
        raise UsageError("Please specify a valid number of sides for the dice (e.g., `!dice 6` or `!dice 20`).")
    return f"🎲 You rolled a **{rng.randint(1, sides)}** on a {sides}-sided die!"


def roll_dice_notation(args: Sequence[str], rng: random.Random) -> str:
    match = _XDY.match(args[0]) if args else None
    if match is None:
        raise UsageError("Please use the format `!roll XdY` (e.g., `!roll 2d6` for two 6-sided dice).")
    count, sides = int(match.group(1)), int(match.group(2))
    if not (1 <= count <= MAX_DICE and 1 <= sides <= MAX_SIDES):
        raise UsageError(f"Please roll between 1 and {MAX_DICE} dice, each with 1 to {MAX_SIDES} sides.")
    rolls = [rng.randint(1, sides) for _ in range(count)]
    return f"🎲 Rolling {count}d{sides}: {' + '.join(str(r) for r in rolls)} = **{sum(rolls)}**"


def rock_paper_scissors(args: Sequence[str], rng: random.Random) -> str:
    choice = args[0].lower() if args else ""
    if choice not in RPS_CHOICES:
        raise UsageError("Please choose rock, paper, or scissors (e.g., `!rps rock`).")
    bot_choice = rng.choice(RPS_CHOICES)
    if choice == bot_choice:
        return f"It's a tie! Both chose **{choice}**."
    if _RPS_BEATS[choice] == bot_choice:
        return f"You win! You chose **{choice}** and I chose **{bot_choice}**."
    return f"I win! You chose **{choice}** and I chose **{bot_choice}**."


def coin_flip(rng: random.Random) -> str:
    return f"🪙 The coin landed on: **{rng.choice(('Heads', 'Tails'))}**!"


def magic_eight_ball(question: str, rng: random.Random) -> str:
    if not question.strip():
        raise UsageError("Ask the 8-Ball a yes/no question! (e.g., `!8ball Will I win the lottery?`)")
    return f'🎱 **Question:** "{question}"\n**8-Ball says:** "{rng.choice(EIGHT_BALL_RESPONSES)}"'


def choose(raw: str, rng: random.Random) -> str:
    items = [item.strip() for item in raw.split(",") if item.strip()]
    if len(items) < 2:
        raise UsageError(
            "Please provide at least two comma-separated items for me to choose from "
            "(e.g., `!choose apple, banana, orange`)."
        )
    return f"🤔 I choose: **{rng.choice(items)}**!"


def reverse_text(raw: str) -> str:
    if not raw:
        raise UsageError("Please provide some text for me to reverse (e.g., `!reverse hello world`).")
    return f"🔄 Reversed text: **{raw[::-1]}**"


INSULTS = (
    "You're about as sharp as a marble.",
    "I've had more intelligent conversations with a brick wall.",
    "Your brain is the size of a pea, and that's an insult to peas.",
    "You're not the sharpest tool in the shed, nor the dullest, just... the one that's slightly rusty.",
    "If your brain was made of chocolate, it wouldn't even fill a thimble.",
    "You're like a broken pencil... pointless.",
    "I've seen better comebacks from a toaster.",
    "Were you born on a highway? Because that's where most accidents happen.",
    "You're a few fries short of a Happy Meal.",
    "You have the personality of a damp rag.",
)


def insult(target: str, rng: random.Random) -> str:
    return f"Hey {target}, {rng.choice(INSULTS)}"


def random_fact(rng: random.Random) -> str:
    return f"💡 **Did you know?** {rng.choice(FACTS)}"


def would_you_rather(rng: random.Random) -> str:
    return f"🤔 **Would you rather...** {rng.choice(WOULD_YOU_RATHER)}"


def info_embed(bot_name: str) -> Embed:
    return Embed(
        title="Bot Information",
        description="This is an example of a rich embed message from your bot!",
        url="https://discordpy.readthedocs.io/",
        fields=[
            EmbedField("Feature 1", "Can respond to commands."),
            EmbedField("Feature 2", "Can fetch external data.", inline=True),
            EmbedField("Feature 3", "Can generate AI text!", inline=True),
            EmbedField("Feature 4", "Can play music!", inline=True),
            EmbedField("Feature 5", "Can run **guessing games** per server!", inline=True),
        ],
        footer=f"{bot_name} - powered by discord.py and Google AI",
    )
