"""Keyword-scored category classifier for product titles and descriptions."""

from __future__ import annotations

from typing import Optional

# Declaration order breaks ties.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Books": (
        "book", "livro", "libro", "livre", "novel", "romance", "paperback",
        "hardcover", "ebook", "author", "autor", "edition", "edição",
    ),
    "Electronics": (
        "phone", "telemóvel", "smartphone", "laptop", "portátil", "computer",
        "computador", "tablet", "headphone", "auscultador", "earbuds", "camera",
        "câmara", "television", "televisão", "monitor", "console", "consola",
        "playstation", "xbox", "nintendo", "electr", "eletr", "usb", "bluetooth",
        "charger", "carregador", "iphone", "samsung", "smartwatch",
    ),
    "Travel": (
        "hotel", "flight", "voo", "viagem", "travel", "trip", "resort",
        "booking", "suitcase", "luggage", "bagagem", "hostel", "tour",
    ),
    "Fashion": (
        "shirt", "camisa", "camisola", "dress", "vestido", "shoe", "sapato",
        "sneaker", "sapatilha", "jacket", "casaco", "jeans", "calças", "trousers",
        "skirt", "saia", "hoodie", "sweater", "handbag", "mala", "wallet",
        "carteira", "scarf", "watch", "relógio", "boots", "botas",
    ),
    "Home": (
        "sofa", "chair", "cadeira", "table", "mesa", "lamp", "candeeiro",
        "kitchen", "cozinha", "bed", "cama", "pillow", "almofada", "decor",
        "furniture", "móvel", "garden", "jardim", "towel", "toalha", "mug",
        "caneca", "vase", "rug", "tapete",
    ),
    "Beauty": (
        "perfume", "fragrance", "makeup", "maquilhagem", "lipstick", "batom",
        "skincare", "cream", "creme", "serum", "shampoo", "cosmetic",
    ),
    "Sports": (
        "sport", "desporto", "fitness", "yoga", "bicycle", "bicicleta", "bike",
        "football", "futebol", "running", "corrida", "tennis", "ténis", "gym",
    ),
    "Toys": (
        "toy", "brinquedo", "lego", "puzzle", "doll", "boneca", "board game",
        "jogo de tabuleiro", "plush", "peluche",
    ),
}


def classify(text: str) -> Optional[str]:
    """Return the category whose keywords occur most often in *text*.

    Occurrences are counted as case-insensitive substring matches, so a stem
    like ``"electr"`` covers ``electronics`` and ``electric``.  Returns
    ``None`` when no keyword occurs at all.
    """
    lowered = (text or "").lower()
    if not lowered:
        return None

    best_label: Optional[str] = None
    best_score = 0
    for label, keywords in CATEGORY_KEYWORDS.items():
        score = sum(lowered.count(keyword) for keyword in keywords)
        if score > best_score:
            best_label, best_score = label, score
    return best_label
