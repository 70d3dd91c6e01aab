import json
import os


def load(filename):
    # loads the json content of a file
    # (FileNotFoundError if it doesn't exist)
    with open(filename) as file:
        return json.load(file)


def load_or_default(filename, default=None):
    try:
        return load(filename)
    except FileNotFoundError:
        return {} if default is None else default


def save(filename, content):
    # writes `content` as indented json, creating parent directories
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filename, "w") as outfile:
        json.dump(content, outfile, indent=2)
