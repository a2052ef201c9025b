from listening_card.__main__ import run

# Generate the card for SPOTIFY_TOKEN and write OUTPUT_DIR/card.json
run()
