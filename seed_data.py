"""
Default catalog, used when no catalog document has been persisted yet.
"""

MUG_IMAGE = "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400&h=400&fit=crop"
BLANKET_IMAGE = "https://images.unsplash.com/photo-1582735689369-4fe89db7114c?w=400&h=400&fit=crop"
PENDANT_IMAGE = "https://images.unsplash.com/photo-1611591437281-460bfbe1220a?w=400&h=400&fit=crop"

DEFAULT_PRODUCTS = [
    {
        "id": "1",
        "name": "Handcrafted Ceramic Mug",
        "description": "Beautiful hand-thrown ceramic mug with a rustic finish. Perfect for your morning "
                       "coffee or tea. Each piece is unique with slight variations in color and texture.",
        "price": 1999,
        "category": "Pottery",
        "images": [{"url": MUG_IMAGE}],
        "stock": 15,
        "isActive": True,
        "featured": True,
        "rating": 4.5,
        "reviews": 12,
    },
    {
        "id": "2",
        "name": "Woven Cotton Throw Blanket",
        "description": "Soft, handwoven cotton throw blanket in warm earth tones. Perfect for adding texture "
                       "and warmth to your living room or bedroom. Made with natural dyes.",
        "price": 7499,
        "category": "Textiles",
        "images": [{"url": BLANKET_IMAGE}],
        "stock": 8,
        "isActive": True,
        "featured": True,
        "rating": 4.8,
        "reviews": 8,
    },
    {
        "id": "3",
        "name": "Sterling Silver Pendant Necklace",
        "description": "Elegant sterling silver pendant necklace with a hand-carved design. Each piece is "
                       "individually crafted and comes with a 18-inch chain.",
        "price": 12499,
        "category": "Jewelry",
        "images": [{"url": PENDANT_IMAGE}],
        "stock": 12,
        "isActive": True,
        "featured": False,
        "rating": 4.7,
        "reviews": 15,
    },
    {
        "id": "4",
        "name": "Wooden Cutting Board",
        "description": "Handcrafted wooden cutting board made from sustainable maple wood. Features a "
                       "beautiful grain pattern and food-safe finish.",
        "price": 3799,
        "category": "Kitchen",
        "images": [{"url": BLANKET_IMAGE}],
        "stock": 20,
        "isActive": True,
        "featured": False,
        "rating": 4.6,
        "reviews": 18,
    },
    {
        "id": "5",
        "name": "Hand-Painted Canvas Art",
        "description": "Original hand-painted canvas artwork featuring abstract floral designs. Each piece "
                       "is one-of-a-kind and signed by the artist.",
        "price": 16999,
        "category": "Art",
        "images": [{"url": MUG_IMAGE}],
        "stock": 3,
        "isActive": True,
        "featured": True,
        "rating": 4.9,
        "reviews": 5,
    },
    {
        "id": "6",
        "name": "Leather Journal",
        "description": "Hand-stitched leather journal with premium paper. Features a rustic brown leather "
                       "cover with embossed details.",
        "price": 2899,
        "category": "Stationery",
        "images": [{"url": PENDANT_IMAGE}],
        "stock": 25,
        "isActive": True,
        "featured": False,
        "rating": 4.4,
        "reviews": 22,
    },
    {
        "id": "7",
        "name": "Hand-Knitted Scarf",
        "description": "Warm, hand-knitted scarf made from merino wool. Features a beautiful cable pattern "
                       "and comes in various colors.",
        "price": 3299,
        "category": "Textiles",
        "images": [{"url": BLANKET_IMAGE}],
        "stock": 18,
        "isActive": True,
        "featured": False,
        "rating": 4.5,
        "reviews": 16,
    },
    {
        "id": "8",
        "name": "Ceramic Planter Set",
        "description": "Set of three handcrafted ceramic planters in different sizes. Each pot has "
                       "drainage holes and comes with a saucer.",
        "price": 5699,
        "category": "Home Decor",
        "images": [{"url": MUG_IMAGE}],
        "stock": 10,
        "isActive": True,
        "featured": False,
        "rating": 4.3,
        "reviews": 14,
    },
]
