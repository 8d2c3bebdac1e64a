"""Keyword relevance scoring for news aimed at expats in Ho Chi Minh City."""

BASE_SCORE = 50
MAX_SCORE = 100

HIGH_RELEVANCE = [
    'bất động sản', 'căn hộ', 'nhà', 'thuê', 'mua', 'giá', 'quận',
    'tp.hcm', 'sài gòn', 'expat', 'nước ngoài', 'visa', 'cư trú'
]
MEDIUM_RELEVANCE = [
    'đầu tư', 'kinh tế', 'việt nam', 'dự án', 'xây dựng', 'giao thông', 'metro', 'sân bay'
]
LOW_RELEVANCE = [
    'du lịch', 'ẩm thực', 'nhà hàng', 'quán', 'sự kiện', 'lễ hội'
]

KEYWORD_WEIGHTS = [(HIGH_RELEVANCE, 15), (MEDIUM_RELEVANCE, 8), (LOW_RELEVANCE, 3)]


def calculate_relevance_score(title: str, description: str = "") -> int:
    """Score an article from 0 to 100 by keyword hits in its title and description.

    Starts at 50 and adds 15, 8 or 3 for each high, medium or low keyword found.
    """
    text = f"{title or ''} {description or ''}".lower()
    score = BASE_SCORE

    for keywords, weight in KEYWORD_WEIGHTS:
        score += weight * sum(1 for keyword in keywords if keyword in text)

    return min(score, MAX_SCORE)
