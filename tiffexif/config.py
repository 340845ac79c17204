"""Codec configuration -- buffer size, tag filters, value size limits."""

import json
from dataclasses import dataclass, field
from typing import FrozenSet

from tiffexif.constants import IMAGE_TAG_ALLOWLIST, MAX_VALUE_LENGTH, SKIPPED_TAGS
from tiffexif.reader import DEFAULT_BUFFER_SIZE


@dataclass
class CodecConfig:
    """Tunable settings shared by the parser and the writer.

    Allows site-specific tag filtering without modifying source code.
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    image_tag_allowlist: FrozenSet[int] = field(default_factory=lambda: IMAGE_TAG_ALLOWLIST)
    skipped_tags: FrozenSet[int] = field(default_factory=lambda: SKIPPED_TAGS)
    max_value_length: int = MAX_VALUE_LENGTH

    @classmethod
    def default(cls) -> 'CodecConfig':
        """Return the built-in defaults."""
        return cls()

    @classmethod
    def from_json(cls, path) -> 'CodecConfig':
        """Load settings from a JSON file and merge with defaults.

        JSON format::

            {
              "buffer_size": 8192,
              "max_value_length": 1048576,
              "image_tag_allowlist": [316, 11],
              "skipped_tags": [700]
            }

        All keys are optional.  Tag lists are *added* to the built-in sets,
        scalars replace the defaults.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)

        config = cls.default()

        if 'buffer_size' in data:
            config.buffer_size = int(data['buffer_size'])
        if 'max_value_length' in data:
            config.max_value_length = int(data['max_value_length'])
        config.image_tag_allowlist = frozenset(
            config.image_tag_allowlist | {int(t) for t in data.get('image_tag_allowlist', [])})
        config.skipped_tags = frozenset(
            config.skipped_tags | {int(t) for t in data.get('skipped_tags', [])})

        if config.buffer_size <= 0:
            raise ValueError(f'buffer_size must be positive, got {config.buffer_size}')
        if config.max_value_length <= 0:
            raise ValueError(f'max_value_length must be positive, got {config.max_value_length}')

        return config
