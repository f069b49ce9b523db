import json
import os

# Load configuration from config.json
_config = None


def load_config():
    global _config
    if _config is None:
        config_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), "config.json")
        with open(config_path, "r", encoding="utf-8") as f:
            _config = json.load(f)
    return _config


# Load configuration
config = load_config()

# Economy
PULL_COST = config.get("PULL_COST", 100)
PULL_CLAIM_ATTEMPTS = config.get("PULL_CLAIM_ATTEMPTS", 3)
CARD_COST = config.get("CARD_COST", 200)
MAX_MOVES = config.get("MAX_MOVES", 30)
MOVES_PER_MINUTE = config.get("MOVES_PER_MINUTE", 10)
MOVE_COST = config.get("MOVE_COST", 1)

# New player defaults
STARTING_GOLD = config.get("STARTING_GOLD", 0)
STARTING_MOVES = config.get("STARTING_MOVES", MAX_MOVES)
STARTING_CARDS = config.get("STARTING_CARDS", 0)
WELCOME_GOLD = config.get("WELCOME_GOLD", 50)
WELCOME_PULLS = config.get("WELCOME_PULLS", 3)
STARTER_PACK_SIZE = config.get("STARTER_PACK_SIZE", 3)

# Roster
MIN_RARITY = config.get("MIN_RARITY", 1)
MAX_RARITY = config.get("MAX_RARITY", 6)
MAX_CHARACTER_IMAGES = config.get("MAX_CHARACTER_IMAGES", 6)
IMAGE_FIELDS = [f"image{i}url" for i in range(1, MAX_CHARACTER_IMAGES + 1)]

# Grid game
GRID_WIDTH = config.get("GRID_WIDTH", 5)
GRID_HEIGHT = config.get("GRID_HEIGHT", 5)
GOLD_TILE_BONUS = config.get("GOLD_TILE_BONUS", 3)
EVENT_TILE_REWARD = config.get("EVENT_TILE_REWARD", 10)
CHARACTER_TILE_REWARD = config.get("CHARACTER_TILE_REWARD", 20)
TILE_BAG = config["TILE_BAG"]

# Flux polling
FLUX_MAX_POLL_ATTEMPTS = config.get("FLUX_MAX_POLL_ATTEMPTS", 40)
FLUX_POLL_INTERVAL_SECONDS = config.get("FLUX_POLL_INTERVAL_SECONDS", 0.5)
FLUX_MAX_NETWORK_RETRIES = config.get("FLUX_MAX_NETWORK_RETRIES", 3)
FLUX_RETRY_DELAY_SECONDS = config.get("FLUX_RETRY_DELAY_SECONDS", 1.0)


def get_tile_bag() -> list:
    """Expand the configured tile bag into a flat list of tile types."""
    tiles = []
    for tile_type, raw_count in TILE_BAG.items():
        try:
            count = int(raw_count)
        except (TypeError, ValueError):
            continue
        tiles.extend([tile_type] * max(count, 0))
    return tiles


# Prompt templates
FLUX_PROMPT_TEMPLATE = (
    "Create a League of Legends style splash art of {prompt}. "
    "High quality anime art style with dynamic lighting and composition."
)

CHARACTER_ART_PROMPT = (
    "Create an epic anime style art of {name}, a {description}. "
    "Character shown in a majestic pose against a cosmic background with nebulas and stars. "
    "Expression is mysterious and powerful. Ethereal lighting effects and magical aura "
    "surrounding the character. High-quality anime art style, clean lines, cosmic color palette."
)

GROK_SYSTEM_INSTRUCTIONS = """You are Grok, a helpful and knowledgeable AI assistant in a chat application that can also generate images.

You have access to an image generation capability through the generate_image function. This function creates high-quality anime-style artwork in the style of League of Legends splash art.

When to use image generation:
1. When users explicitly request images or artwork
2. When users ask you to show them something
3. When users want to visualize a character, scene, or concept
4. When users ask you to test your image capabilities

The generated images will automatically be:
- In an anime art style
- High quality with dynamic lighting
- Similar to League of Legends splash art
- 512x768 pixels in size

IMPORTANT: When users ask you to test your image generation or to generate an image, you MUST use the generate_image function. Do not just describe what you would generate - actually call the function.

Keep your responses conversational and engaging. When generating images, explain what you're creating and why you chose certain elements."""

CHARACTER_SYSTEM_INSTRUCTIONS = (
    "You are roleplaying a character in a collectible character game. "
    "Stay in character and keep answers short.\n\nCharacter background: {bio}"
)

EVENT_CONTENT_PROMPT = """You are {watcher_name} from {watcher_series}, secretly watching {player_name}'s progress through the game board.

Generate 3 unique events where you indirectly help them, building anticipation for your eventual reveal:
E1: A mysterious teaching moment where you share wisdom from the shadows (reward: {reward} gold)
E2: An exciting discovery you help them make while staying hidden (reward: {reward} gold)
E3: A challenge you help them overcome anonymously (reward: {reward} gold)

Each event should hint at your presence without revealing your identity.
Respond in JSON format with keys E1, E2, and E3. Each response should be 1-2 sentences."""

CHARACTER_EVENT_PROMPT = """You are {name} from {series}. Generate 3 unique, in-character reactions to finding {reward} gold pieces. Each reaction should be a single sentence that reflects your personality and background. Respond in JSON format with keys E1, E2, and E3."""

ENCOUNTER_PROMPT = """You are {player_name} from {player_series}.
Generate a short, in-character dialog that would occur when you encounter {other_name} from {other_series}.
The dialog should reflect both characters' personalities and backgrounds, and hint at a potential future alliance.
Keep it to 1-2 sentences, focusing on the excitement of meeting a new ally."""

HANDOFF_DIALOG_PROMPT = """{outgoing_name}{outgoing_context} is handing the exploration over to {incoming_name}{incoming_context}.
Write one line for each character: the outgoing character encouraging the incoming one, and the incoming character replying.
Respond in JSON format with keys "outgoing" and "incoming"."""
