"""Stop word sets for headline keyword and topic extraction.

Used by:
  - nlp.base (significant keywords, capitalized nouns, entity runs)
  - trending (topic filtering)
"""

# Function words and headline filler ignored when comparing titles
TITLE_STOP = frozenset({
    "the", "a", "an", "in", "on", "at", "to", "for", "of", "and", "or",
    "is", "are", "was", "were", "be", "been", "being", "has", "have", "had",
    "with", "from", "by", "its", "it", "this", "that", "these", "those",
    "will", "can", "may", "could", "would", "should", "not", "no", "but",
    "if", "as", "up", "out", "about", "after", "before", "over", "into",
    "than", "then", "them", "they", "their", "there", "what", "when",
    "where", "which", "while", "who", "whom", "why", "how", "also", "just",
    "more", "most", "some", "other", "such", "only", "very", "here", "now",
    "says", "said", "say", "amid", "against", "between", "during", "under",
    "your", "you", "our", "his", "her", "she", "him", "we", "us",
    "today", "tonight", "yesterday", "tomorrow",
})

# Generic news vocabulary that never makes a useful trending topic
COMMON_TOPIC_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "her",
    "was", "one", "our", "out", "day", "had", "has", "his", "how", "its",
    "may", "new", "now", "old", "see", "way", "who", "did", "get", "let",
    "say", "she", "too", "use", "says", "said", "news", "report", "reports",
    "today", "year", "years", "time", "week", "month", "people", "first",
    "last", "after", "before", "more", "most", "some", "what", "when",
    "where", "which", "while", "about", "could", "would", "their", "there",
    "these", "those", "being", "other", "video", "watch", "live", "update",
    "breaking", "developing", "exclusive", "opinion", "analysis",
})

ALL_STOP = TITLE_STOP | COMMON_TOPIC_WORDS
