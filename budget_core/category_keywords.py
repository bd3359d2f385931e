"""
Keyword dictionaries used to relate transactions to budgets and categories.

Two static tables live here:

1. BUDGET_CATEGORY_KEYWORDS: keyed by the lowercased name or category of a
   budget. Used by the budget matcher (keyword tier) and by
   ``categories_related`` (fuzzy tier).
2. CATEGORY_KEYWORDS: keyed by canonical transaction category. Used to
   classify a raw description into a category without any model.

Both tables are ordered; lookups that scan them return the first hit in
insertion order.
"""

from __future__ import annotations

from typing import Mapping, Optional

BUDGET_CATEGORY_KEYWORDS: Mapping[str, tuple[str, ...]] = {
    # Food & groceries
    "mercado": ("supermercado", "mercado", "grocery", "groceries", "víveres", "compras", "alimentos"),
    "supermercado": (
        "supermercado", "super", "grocery", "mercado", "jumbo", "la sirena", "bravo",
        "nacional", "ole", "carrefour", "walmart",
    ),
    "comida": (
        "comida", "food", "restaurante", "restaurant", "almuerzo", "lunch", "cena",
        "dinner", "desayuno", "breakfast", "delivery",
    ),
    "restaurantes": ("restaurante", "restaurant", "pizza", "burger", "sushi", "comida rápida", "fast food"),
    # Transportation
    "combustible": ("gasolina", "gas", "fuel", "combustible", "diesel", "shell", "texaco", "propagas", "sunix"),
    "transporte": ("uber", "indriver", "taxi", "pasaje", "metro", "teleférico", "omsa", "transporte"),
    "vehiculo": ("carro", "auto", "vehicle", "mantenimiento", "aceite", "llanta", "frenos", "taller"),
    # Home & utilities
    "servicios": (
        "luz", "agua", "internet", "cable", "teléfono", "gas", "electricidad", "edenorte",
        "edesur", "edeeste", "claro", "altice",
    ),
    "internet": ("internet", "wifi", "fibra", "claro", "altice", "wind"),
    "electricidad": ("luz", "electricidad", "edenorte", "edesur", "edeeste", "electric"),
    "agua": ("agua", "inapa", "caasd", "water"),
    "alquiler": ("alquiler", "renta", "rent", "arrendamiento", "mensualidad"),
    # Entertainment
    "entretenimiento": ("netflix", "spotify", "amazon", "hbo", "disney", "prime", "cine", "teatro", "concierto"),
    # Health
    "salud": ("farmacia", "medicina", "doctor", "médico", "hospital", "clínica", "consulta", "laboratorio"),
    # Education
    "educacion": ("colegio", "escuela", "universidad", "curso", "libro", "educación", "matrícula"),
    # Personal
    "ropa": ("ropa", "zapatos", "vestido", "camisa", "pantalón", "zara", "h&m"),
    "personal": ("peluquería", "barbería", "spa", "gym", "gimnasio", "cuidado personal"),
}

CATEGORY_KEYWORDS: Mapping[str, tuple[str, ...]] = {
    "Food": (
        "restaurante", "restaurant", "comida", "food", "cena", "dinner", "almuerzo", "lunch",
        "desayuno", "breakfast", "cafe", "coffee", "starbucks", "mcdonalds", "burger", "pizza",
        "tacos", "sushi", "supermercado", "supermarket", "walmart", "costco", "grocery", "mercado",
        "tienda", "oxxo", "seven", "uber eats", "rappi", "pedidosya", "foodora", "doordash",
    ),
    "Transportation": (
        "uber", "cabify", "didi", "lyft", "taxi", "bus", "autobus", "metro", "subway", "tren",
        "train", "gasolina", "gas", "fuel", "petrol", "estacionamiento", "parking", "peaje", "toll",
        "mecanico", "mechanic", "taller", "aceite", "llantas", "tires", "boleto", "ticket", "avion",
        "flight", "airline", "aerolinea", "delta", "american", "united", "vuelo",
    ),
    "Housing": (
        "renta", "rent", "alquiler", "hipoteca", "mortgage", "casa", "home", "depto", "apartment",
        "mantenimiento", "maintenance", "reparacion", "repair", "muebles", "furniture", "ikea",
        "homedepot", "ferreteria", "hardware",
    ),
    "Utilities": (
        "luz", "electricidad", "electricity", "cfe", "enel", "agua", "water", "gas", "internet",
        "wifi", "cable", "telefono", "phone", "celular", "mobile", "telcel", "movistar", "at&t",
        "t-mobile", "verizon", "claro", "recarga",
    ),
    "Services": (
        "netflix", "spotify", "hbo", "disney", "amazon prime", "hulu", "youtube", "apple", "icloud",
        "google", "dropbox", "microsoft", "adobe", "chatgpt", "openai", "midjourney", "patreon",
        "suscripcion", "subscription", "membership", "membresia", "gym", "gimnasio", "smart fit",
    ),
    "Health": (
        "doctor", "medico", "consult", "consulta", "farmacia", "pharmacy", "drugstore", "medicina",
        "medicine", "hospital", "clinica", "clinic", "dentista", "dentist", "dental", "ojos", "eyes",
        "optica", "glasses", "lentes", "terapia", "therapy", "psicologo", "psychologist", "seguro",
        "insurance", "salud", "health",
    ),
    "Entertainment": (
        "cine", "cinema", "movie", "pelicula", "teatro", "theater", "concierto", "concert", "boletos",
        "tickets", "ticketmaster", "juego", "game", "videojuego", "steam", "playstation", "xbox",
        "nintendo", "boliche", "bowling", "bar", "antro", "club", "pub", "cerveza", "beer", "alcohol",
        "fiesta", "party",
    ),
    "Investments": (
        "inversion", "investment", "acciones", "stocks", "bonos", "bonds", "crypto", "bitcoin", "btc",
        "eth", "binance", "coinbase", "etoro", "robinhood", "gbp", "gbm", "cetes", "ahorro", "savings",
        "deposito", "deposit",
    ),
    "Salary": (
        "nomina", "payroll", "sueldo", "salary", "pago", "payment", "deposito", "transferencia",
        "honorarios", "fees", "bonus", "aguinaldo",
    ),
    "Freelance": (
        "freelance", "cliente", "client", "proyecto", "project", "servicio", "service", "venta", "sale",
        "upwork", "fiverr", "workana",
    ),
}


def budget_keywords(name: str, category: str) -> tuple[str, ...]:
    """Keyword list for a budget, looked up by name first, then by category."""
    return (
        BUDGET_CATEGORY_KEYWORDS.get(name.strip().lower())
        or BUDGET_CATEGORY_KEYWORDS.get(category.strip().lower())
        or ()
    )


def categories_related(first: str, second: str) -> bool:
    """
    Check whether two category strings belong to the same keyword group.

    A category belongs to a group when it contains, or is contained in, the
    group key or any of its keywords. Empty categories relate to nothing.
    """
    left = first.strip().lower()
    right = second.strip().lower()
    if not left or not right:
        return False

    for key, keywords in BUDGET_CATEGORY_KEYWORDS.items():
        related = (key, *keywords)
        if _belongs(left, related) and _belongs(right, related):
            return True
    return False


def classify_by_keywords(description: str) -> Optional[str]:
    """Return the first category whose keyword occurs in the description."""
    normalized = description.strip().lower()
    if not normalized:
        return None
    for category, keywords in CATEGORY_KEYWORDS.items():
        for keyword in keywords:
            if keyword in normalized:
                return category
    return None


def _belongs(value: str, group: tuple[str, ...]) -> bool:
    return any(word in value or value in word for word in group)
