"""Shop catalog. Food items are consumables, the rest are durable inventory."""
from typing import Dict, List, Optional

from app.schemas import ShopItem, ShopCategory


SHOP_ITEMS: List[ShopItem] = [
    # Power-ups
    ShopItem(id='powerup-hint', name='Dica Extra',
             description='Receba uma dica adicional em qualquer caso clínico',
             price=50, category='powerup', rarity='comum'),
    ShopItem(id='powerup-time', name='+30 Segundos',
             description='Adiciona 30 segundos ao timer do quiz',
             price=100, category='powerup', rarity='comum'),
    ShopItem(id='powerup-skip', name='Pular Questão',
             description='Pule uma questão difícil sem penalidade',
             price=75, category='powerup', rarity='comum'),
    ShopItem(id='powerup-double', name='Dobrar Pontos',
             description='Dobra os pontos do próximo caso correto',
             price=150, category='powerup', rarity='raro'),
    ShopItem(id='powerup-shield', name='Escudo de Erro',
             description='Protege contra uma resposta errada',
             price=200, category='powerup', rarity='raro'),

    # Cosmetics
    ShopItem(id='cosmetic-badge-cardio', name='Badge Cardiologista',
             description='Mostre sua especialidade em Cardiologia',
             price=300, category='cosmetic', rarity='raro'),
    ShopItem(id='cosmetic-badge-neuro', name='Badge Neurologista',
             description='Mostre sua especialidade em Neurologia',
             price=300, category='cosmetic', rarity='raro'),
    ShopItem(id='cosmetic-frame-gold', name='Moldura Dourada',
             description='Uma moldura dourada para seu avatar',
             price=500, category='cosmetic', rarity='epico'),
    ShopItem(id='cosmetic-title-expert', name='Título: Expert',
             description='Exiba o título "Expert" no seu perfil',
             price=750, category='cosmetic', rarity='epico'),
    ShopItem(id='cosmetic-aura-legendary', name='Aura Lendária',
             description='Efeito visual especial no seu avatar',
             price=1500, category='cosmetic', rarity='lendario'),

    # Content
    ShopItem(id='content-pack-cardio', name='Pack Cardiologia',
             description='5 casos clínicos avançados de cardiologia',
             price=400, category='content', rarity='raro'),
    ShopItem(id='content-pack-emergency', name='Pack Emergências',
             description='5 casos de emergência de alta complexidade',
             price=400, category='content', rarity='raro'),
    ShopItem(id='content-ecg-master', name='ECG Master Class',
             description='10 ECGs desafiadores para interpretar',
             price=600, category='content', rarity='epico'),
    ShopItem(id='content-mystery', name='Caixa Mistério',
             description='Contém um item aleatório!',
             price=250, category='content', rarity='raro'),

    # Food
    ShopItem(id='food-snack', name='Lanche Rápido',
             description='Um lanche leve para matar a fome',
             price=50, category='food', rarity='comum', hunger_restore=20, energy_bonus=0),
    ShopItem(id='food-coffee', name='Café Forte',
             description='Dá um boost de energia imediato',
             price=30, category='food', rarity='comum', hunger_restore=5, energy_bonus=15),
    ShopItem(id='food-meal', name='Refeição Completa',
             description='Almoço nutritivo que restaura bastante fome',
             price=150, category='food', rarity='raro', hunger_restore=50, energy_bonus=10),
    ShopItem(id='food-plantao-kit', name='Kit Plantão',
             description='Tudo que você precisa para aguentar um plantão longo',
             price=300, category='food', rarity='epico', hunger_restore=100, energy_bonus=30),
    ShopItem(id='food-energy-drink', name='Energético',
             description='Bebida energética para despertar!',
             price=40, category='food', rarity='comum', hunger_restore=0, energy_bonus=25),
    ShopItem(id='food-sandwich', name='Sanduíche Natural',
             description='Lanche saudável e equilibrado',
             price=80, category='food', rarity='comum', hunger_restore=35, energy_bonus=5),
    ShopItem(id='food-pizza', name='Pizza do Refeitório',
             description='Uma fatia generosa que sustenta',
             price=100, category='food', rarity='comum', hunger_restore=40, energy_bonus=0),
    ShopItem(id='food-salad', name='Salada Fitness',
             description='Leve e nutritiva, ideal para manter o foco',
             price=70, category='food', rarity='comum', hunger_restore=25, energy_bonus=10),
    ShopItem(id='food-chocolate', name='Barra de Chocolate',
             description='Prazer rápido e energia instantânea',
             price=25, category='food', rarity='comum', hunger_restore=10, energy_bonus=10),
    ShopItem(id='food-sushi', name='Combo Sushi Premium',
             description='Refeição japonesa sofisticada do hospital',
             price=250, category='food', rarity='raro', hunger_restore=70, energy_bonus=20),
]

SHOP_ITEMS_BY_ID: Dict[str, ShopItem] = {item.id: item for item in SHOP_ITEMS}


def get_item_by_id(item_id: str) -> Optional[ShopItem]:
    return SHOP_ITEMS_BY_ID.get(item_id)


def get_items_by_category(category: ShopCategory) -> List[ShopItem]:
    return [item for item in SHOP_ITEMS if item.category == category]
