"""Internal APIs for terminally. Not covered by compatibility guarantees."""
