from __future__ import annotations

from typing import Any, Dict


SAMPLE_PROPERTY: Dict[str, Any] = {
    "title": "فيلا فاخرة بأبحر الشمالية",
    "description": (
        "فرصة استثنائية لاقتناء فيلا فريدة من نوعها، مبنية بأعلى معايير الجودة والتصميم، "
        "مؤثثة بالكامل بأثاث فاخر، وتقع على زاوية شارعين عرض 16م، في قلب أبحر الشمالية."
    ),
    "price": 174147140,
    "currency": "ريال",
    "type": "فيلا",
    "status": "متاح",
    "bedrooms": 5,
    "bathrooms": 6,
    "area": 625.5,
    "location": "أبحر الشمالية",
    "city": "جدة",
    "country": "السعودية",
    "images": [
        "https://images.unsplash.com/photo-1600596542815-ffad4c1539a9?auto=format&fit=crop&w=1000&q=80",
        "https://images.unsplash.com/photo-1600607687939-ce8a6c25118c?auto=format&fit=crop&w=1000&q=80",
    ],
    "features": ["تكييف مركزي", "حديقة", "مسبح", "مرآب"],
    "yearBuilt": 2023,
    "parking": 3,
    "contactInfo": "+966 50 123 4567",
    "companyLogos": [],
    "marketer": {
        "name": "أحمد منصور",
        "role": "مسوق عقاري",
    },
}
