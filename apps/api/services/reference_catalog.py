"""
Reference Catalog

Static tables for the library content a pilgrim can complete (books, videos,
trails, Magnolias hikes) and the insignia thresholds evaluated against them.
Catalog rows are never stored per user; only completions are.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

BOOK_CATEGORY_IMPRESCINDIBLE = "imprescindible"
BOOK_CATEGORY_RECOMENDADO = "recomendado"
BOOK_CATEGORY_FICCION = "ficcion"


@dataclass(frozen=True)
class Book:
    id: str
    title: str
    category: str


@dataclass(frozen=True)
class Hike:
    id: str
    number: int
    stage: int
    distance: str
    estimated_duration: str
    points: int


@dataclass(frozen=True)
class Video:
    id: str
    section: str


@dataclass(frozen=True)
class Trail:
    id: str
    name: str
    level: str


@dataclass(frozen=True)
class StageInsignia:
    stage: int
    km: int
    title: str
    description: str
    image: str


@dataclass(frozen=True)
class CountInsignia:
    """A tiered insignia earned once a distinct-completion count reaches ``min_count``."""
    id: str
    title: str
    description: str
    image: str
    min_count: int
    max_count: Optional[int] = None


# Ordered: the first two are essential reading, the next three recommended,
# the rest fiction (no points).
BOOKS: Tuple[Book, ...] = (
    Book("peregrino-compostela", "El Peregrino de Compostela (Diario de un mago) – Paulo Coelho", BOOK_CATEGORY_IMPRESCINDIBLE),
    Book("dejate-tonterias", "¡Déjate de tonterías! Y haz el Camino de Santiago – Cristina Hortal", BOOK_CATEGORY_IMPRESCINDIBLE),
    Book("caminar-filosofia", "Caminar: una filosofía – Frédéric Gros", BOOK_CATEGORY_RECOMENDADO),
    Book("dejate-tonterias-recomendado", "¡Déjate de tonterías! Y haz el Camino de Santiago – Cristina Hortal", BOOK_CATEGORY_RECOMENDADO),
    Book("guia-magica-camino", "Guía mágica del Camino de Santiago – Francisco Contreras Gil", BOOK_CATEGORY_RECOMENDADO),
    Book("peregrinatio", "Peregrinatio – Matilde Asensi", BOOK_CATEGORY_FICCION),
    Book("iacobus", "Iacobus – Matilde Asensi", BOOK_CATEGORY_FICCION),
    Book("ladrona-huesos", "La ladrona de huesos – Manel Loureiro", BOOK_CATEGORY_FICCION),
    Book("alma-piedras", "El alma de las piedras – Paloma Sánchez-Garnica", BOOK_CATEGORY_FICCION),
)

HIKES: Tuple[Hike, ...] = (
    # Etapa 1
    Hike("etapa-1-hike-1", 1, 1, "5km", "1h 30min", 30),
    Hike("etapa-1-hike-2", 2, 1, "6km", "1h 30min", 31),
    Hike("etapa-1-hike-3", 3, 1, "7km", "1h 45min", 32),
    Hike("etapa-1-hike-4", 4, 1, "8km", "1h", 33),
    Hike("etapa-1-hike-5", 5, 1, "9km", "2h 15min", 34),
    Hike("etapa-1-hike-6", 6, 1, "10km", "2h 30min", 35),
    # Etapa 2
    Hike("etapa-2-hike-7", 7, 2, "9km", "2h 15min", 34),
    Hike("etapa-2-hike-8", 8, 2, "10km", "2h 30min", 35),
    Hike("etapa-2-hike-9", 9, 2, "10km", "2h 30min", 35),
    Hike("etapa-2-hike-10", 10, 2, "11km", "2h 45min", 36),
    Hike("etapa-2-hike-11", 11, 2, "12km", "3h", 37),
    Hike("etapa-2-hike-12", 12, 2, "11km", "3h", 37),
    # Etapa 3
    Hike("etapa-3-hike-13", 13, 3, "13km", "3h 15min", 38),
    Hike("etapa-3-hike-14", 14, 3, "14km", "3h 30min", 39),
    Hike("etapa-3-hike-15", 15, 3, "14km", "3h 30min", 39),
    Hike("etapa-3-hike-16", 16, 3, "15km", "3h 45min", 40),
    Hike("etapa-3-hike-17", 17, 3, "15km", "3h 45min", 40),
    Hike("etapa-3-hike-18", 18, 3, "16km", "4h", 41),
    # Etapa 4
    Hike("etapa-4-hike-19", 19, 4, "12km", "3h", 37),
    Hike("etapa-4-hike-20", 20, 4, "14km", "3h 30min", 39),
    Hike("etapa-4-hike-21", 21, 4, "15km", "3h 45min", 40),
    Hike("etapa-4-hike-22", 22, 4, "16km", "4h", 41),
    # Etapa 5
    Hike("etapa-5-hike-23", 23, 5, "12km", "3h", 37),
    Hike("etapa-5-hike-24", 24, 5, "10km", "2h 30min", 35),
    Hike("etapa-5-hike-25", 25, 5, "8km", "2h", 35),
    Hike("etapa-5-hike-26", 26, 5, "6km", "1h 30min", 35),
)

VIDEOS: Tuple[Video, ...] = (
    Video("EFjZLyIPewc", "semanas-1-4"),
    Video("_OPyER9UtNU", "semanas-1-4"),
    Video("eswDoKBpEgc", "semanas-1-4"),
    Video("-92qwf-XgjY", "semanas-1-4"),
    Video("ylFtVYbgXO0", "semanas-1-4"),
    Video("kXMq1JE_F4E", "semanas-5-10"),
    Video("3MSRUsnf2Gg", "semanas-5-10"),
    Video("blK3IF51B0M", "semanas-5-10"),
    Video("lVEnNfBd-aU", "semanas-5-10"),
    Video("Q3fb16ZYfzA", "semanas-11-24"),
    Video("jhbcJl13ytE", "semanas-11-24"),
    Video("yQ9OvR7wNS0", "semanas-11-24"),
    Video("Fbh2_XaT0Og", "semanas-11-24"),
    Video("-8SdBUvPeBg", "semanas-11-24"),
    Video("AIOgfF3lFxs", "semanas-11-24"),
    Video("gBkLvdSnoio", "semanas-25-36"),
    Video("n4jaHkUeBTk", "semanas-25-36"),
    Video("b1rAXS0-FL4", "semanas-25-36"),
    Video("pCTO2rnR3Lw", "semanas-25-36"),
    Video("0s2JmKKzWqA", "semanas-25-36"),
    Video("nFOWVqG47YU", "semanas-37-52"),
    Video("_HOTMHFpQ7U", "semanas-37-52"),
    Video("jV26kIFugaw", "semanas-37-52"),
    Video("olNIKawCyGI", "semanas-37-52"),
    Video("MeDgp36cc-U", "semanas-37-52"),
)

TRAILS: Tuple[Trail, ...] = (
    Trail("mission-trails", "Mission Trails Regional Park (Visitor Center Loop)", "Fácil a Moderado"),
    Trail("torrey-pines", "Torrey Pines State Natural Reserve (Beach Trail)", "Fácil a Moderado"),
    Trail("cowles-mountain", "Cowles Mountain (por Golfcrest Dr.)", "Moderado a Difícil"),
    Trail("iron-mountain", "Iron Mountain", "Moderado"),
    Trail("penasquitos-canyon", "Los Peñasquitos Canyon Preserve", "Fácil"),
    Trail("mount-woodson", "Mount Woodson (\"Potato Chip Rock\")", "Difícil/Extenuante"),
    Trail("annies-canyon", "Annie's Canyon Trail", "Fácil a Moderado"),
    Trail("batiquitos-lagoon", "Batiquitos Lagoon", "Fácil"),
    Trail("lake-hodges", "Lake Hodges", "Fácil"),
    Trail("black-mountain", "Black Mountain", "Moderado"),
    Trail("blue-sky-ecological-reserve", "Blue Sky Ecological Reserve", "Moderado a Difícil"),
    Trail("double-peak-park", "Double Peak Park", "Moderado"),
    Trail("calavera-lake", "Calavera Lake", "Moderado"),
    Trail("el-cajon-mountain", "El Cajon Mountain", "Difícil/Extenuante"),
    Trail("stonewall-peak", "Stonewall Peak", "Moderado"),
    Trail("cuyamaca-peak", "Cuyamaca Peak", "Difícil/Extenuante"),
    Trail("volcan-mountain", "Volcan Mountain", "Moderado"),
    Trail("san-elijo-lagoon", "San Elijo Lagoon", "Fácil"),
    Trail("morrison-pond-sweetwater", "Morrison Pond – Sweetwater Summit Regional Park", "Fácil"),
    Trail("guajome-regional-park", "Guajome Regional Park", "Fácil"),
    Trail("ramona-grasslands", "Ramona Grasslands County Preserve", "Fácil"),
    Trail("penasquitos-canyon-extended", "Los Peñasquitos Canyon Preserve", "Fácil"),
    Trail("louis-stelzer-county-park", "Louis A. Stelzer County Park", "Moderado"),
    Trail("del-dios-highlands", "Del Dios Highlands County Preserve", "Moderado"),
    Trail("sycamore-canyon-goodan-ranch", "Sycamore Canyon / Goodan Ranch", "Moderado"),
    Trail("wilderness-gardens", "Wilderness Gardens County Preserve", "Moderado"),
    Trail("el-monte-county-park", "El Monte County Park", "Moderado"),
    Trail("santa-ysabel-east", "Santa Ysabel East County Preserve", "Difícil"),
    Trail("hellhole-canyon", "Hellhole Canyon County Preserve", "Difícil"),
    Trail("mount-gower", "Mount Gower County Preserve", "Difícil"),
)

STAGE_INSIGNIAS: Tuple[StageInsignia, ...] = (
    StageInsignia(1, 45, "El camino ya comenzó", "Marca el inicio. Tomaste la decisión y diste los primeros pasos.", "/insignia_etapa1.png"),
    StageInsignia(2, 109, "La constancia se entrena", "Aquí el hábito ya se formó. Caminar se volvió parte de tu rutina.", "/insignia_etapa2.png"),
    StageInsignia(3, 196, "Tu cuerpo ya sabe caminar lejos", "La resistencia apareció. Tu cuerpo aprendió a sostener el esfuerzo.", "/insignia_etapa3.png"),
    StageInsignia(4, 253, "Caminar acompañados hace el camino más fuerte", "Logro de comunidad. Caminar en grupo hizo la experiencia más sólida.", "/insignia_etapa4.png"),
    StageInsignia(5, 289, "Estás listo para el Camino", "Entrenamiento completo. Llegaste preparado para la gran aventura.", "/insignia_etapa5.png"),
)

BOOK_INSIGNIAS: Tuple[CountInsignia, ...] = (
    CountInsignia("explorador-lectura", "Explorador de Lectura", "Has comenzado tu viaje literario.", "/explorador_lectura.png", 1, 2),
    CountInsignia("lector-constante", "Lector Constante", "La lectura se ha vuelto parte de tu preparación.", "/lector_constante.png", 3, 4),
    CountInsignia("lector-experto", "Lector Experto", "Has profundizado en la literatura del Camino.", "/lector_experto.png", 5),
)

VIDEO_INSIGNIAS: Tuple[CountInsignia, ...] = (
    CountInsignia("explorador-cultural", "Explorador Cultural", "Has comenzado a explorar los videos del Camino.", "/explorador_camino.png", 1, 2),
    CountInsignia("mirar-camino", "Mirar el Camino", "Estás viendo y aprendiendo del Camino.", "/mirar_camino.png", 3, 4),
    CountInsignia("cultura-camino", "Cultura del Camino", "Has profundizado en la cultura y sabiduría del Camino.", "/inspiracion_marcha.png", 5),
)

_BOOKS_BY_ID: Dict[str, Book] = {b.id: b for b in BOOKS}
_HIKES_BY_ID: Dict[str, Hike] = {h.id: h for h in HIKES}
_VIDEO_IDS = frozenset(v.id for v in VIDEOS)
_TRAIL_IDS = frozenset(t.id for t in TRAILS)


def get_book_category(book_id: str) -> Optional[str]:
    book = _BOOKS_BY_ID.get(book_id)
    return book.category if book else None


def get_hike_points(hike_id: str) -> int:
    hike = _HIKES_BY_ID.get(hike_id)
    return hike.points if hike else 0


def get_hikes_by_stage(stage: int) -> List[Hike]:
    return [h for h in HIKES if h.stage == stage]


def is_known_book(book_id: str) -> bool:
    return book_id in _BOOKS_BY_ID


def is_known_hike(hike_id: str) -> bool:
    return hike_id in _HIKES_BY_ID


def is_known_video(video_id: str) -> bool:
    return video_id in _VIDEO_IDS


def is_known_trail(trail_id: str) -> bool:
    return trail_id in _TRAIL_IDS


def format_requirement(insignia: CountInsignia, noun: str) -> str:
    """'1-2 libros' for bounded tiers, '5+ libros' for the open-ended one."""
    if insignia.max_count is not None:
        return f"{insignia.min_count}-{insignia.max_count} {noun}"
    return f"{insignia.min_count}+ {noun}"
