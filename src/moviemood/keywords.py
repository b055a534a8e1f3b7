"""Static trigger dictionaries used by the preference analyzer."""
from types import MappingProxyType

# Category -> trigger substrings. Matching is substring containment per token,
# so multi-word triggers ("science fiction", "true story") never fire.
GENRE_KEYWORDS = MappingProxyType({
    'action': ('action', 'fight', 'explosion', 'adventure', 'exciting'),
    'thriller': ('thriller', 'suspense', 'tension', 'mystery', 'nail-biting'),
    'drama': ('drama', 'emotional', 'life', 'relationship', 'touching'),
    'sci-fi': ('sci-fi', 'science fiction', 'future', 'space', 'technology'),
    'horror': ('horror', 'scary', 'frightening', 'terrifying', 'spooky'),
    'comedy': ('comedy', 'funny', 'hilarious', 'laugh', 'humorous'),
    'romance': ('romance', 'love', 'romantic', 'relationship', 'dating'),
    'fantasy': ('fantasy', 'magical', 'mythical', 'supernatural', 'enchanted'),
    'animation': ('animation', 'animated', 'cartoon', 'pixar', 'disney'),
    'documentary': ('documentary', 'real', 'true story', 'historical', 'educational'),
})

EMOTION_KEYWORDS = MappingProxyType({
    'suspense': ('suspense', 'tension', 'nail-biting', 'thrilling', 'edge'),
    'hope': ('hope', 'uplifting', 'inspiring', 'positive', 'optimistic'),
    'fear': ('scary', 'frightening', 'horror', 'terrifying', 'creepy'),
    'joy': ('happy', 'joyful', 'fun', 'upbeat', 'cheerful'),
    'sadness': ('sad', 'emotional', 'touching', 'moving', 'tearjerker'),
    'anger': ('angry', 'revenge', 'vengeance', 'fury', 'rage'),
    'wonder': ('amazing', 'wonderful', 'magical', 'spectacular', 'mindblowing'),
})

# Whole-text triggers for the intensity level
HIGH_INTENSITY_KEYWORDS = ('intense', 'brutal', 'extreme', 'violent', 'action-packed')
LOW_INTENSITY_KEYWORDS = ('mild', 'gentle', 'calm', 'peaceful', 'slow-paced')

DEFAULT_INTENSITY = 5
HIGH_INTENSITY = 8
LOW_INTENSITY = 3
