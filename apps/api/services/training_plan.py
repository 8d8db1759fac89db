"""
Training Plan Catalog

The fixed 52-week walking plan, split into five phases. Every week lists the
days that must be walked and the distance prescribed for each day. The plan is
static reference data: it is generated once at import and never persisted.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

DAYS_OF_WEEK = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

TOTAL_WEEKS = 52
PHASE_COUNT = 5


@dataclass(frozen=True)
class TrainingDay:
    day: str
    distance_km: float
    focus: str


@dataclass(frozen=True)
class Week:
    week_number: int
    phase_number: int
    days: Tuple[TrainingDay, ...]

    @property
    def weekly_total_km(self) -> float:
        return round(sum(d.distance_km for d in self.days), 1)

    @property
    def required_days(self) -> Tuple[str, ...]:
        return tuple(d.day for d in self.days)

    def distance_for(self, day: str) -> Optional[float]:
        for d in self.days:
            if d.day == day:
                return d.distance_km
        return None


@dataclass(frozen=True)
class Phase:
    number: int
    name: str
    weeks: Tuple[int, ...]
    description: str
    goals: Tuple[str, ...] = field(default_factory=tuple)


PHASES: Tuple[Phase, ...] = (
    Phase(
        number=1,
        name="Adaptación",
        weeks=tuple(range(1, 9)),
        description="Construye la base. Enfócate en establecer un hábito constante de caminata y aprender la técnica adecuada.",
        goals=(
            "Establecer una rutina constante de caminata",
            "Aprender la técnica adecuada de caminata",
            "Desarrollar resistencia básica",
        ),
    ),
    Phase(
        number=2,
        name="Aumento Progresivo",
        weeks=tuple(range(9, 21)),
        description="Aumenta gradualmente la distancia e introduce subidas suaves.",
        goals=(
            "Aumentar la distancia semanal a 20-30km",
            "Introducir entrenamiento en subidas",
            "Desarrollar resistencia cardiovascular",
        ),
    ),
    Phase(
        number=3,
        name="Consolidación",
        weeks=tuple(range(21, 37)),
        description="Consolida tu progreso con caminatas más largas e introduce elementos de fortalecimiento.",
        goals=(
            "Mantener distancia semanal de 25-40km",
            "Desarrollar fuerza y resistencia",
            "Desarrollar resiliencia mental",
        ),
    ),
    Phase(
        number=4,
        name="Resistencia Avanzada",
        weeks=tuple(range(37, 49)),
        description="Prepárate para caminatas de larga distancia con sesiones extendidas y equipo completo.",
        goals=(
            "Completar 40-55km semanales",
            "Dominar el ritmo de larga distancia",
            "Practicar con equipo completo",
        ),
    ),
    Phase(
        number=5,
        name="Preparación Máxima",
        weeks=tuple(range(49, 53)),
        description="Distancias máximas seguidas de reducción gradual. Confía en tu entrenamiento.",
        goals=(
            "Completar caminatas de distancia máxima",
            "Reducir gradualmente y descansar",
            "Confiar en tu entrenamiento",
        ),
    ),
)


def _week(number: int, phase: int, days: Iterable[Tuple[str, float, str]]) -> Week:
    return Week(
        week_number=number,
        phase_number=phase,
        days=tuple(TrainingDay(day=d, distance_km=float(km), focus=f) for d, km, f in days),
    )


def _generate_weeks() -> List[Week]:
    weeks: List[Week] = []

    # Phase 1: Adaptation (weeks 1-8)
    for n in (1, 2):
        weeks.append(_week(n, 1, [
            ("Monday", 3, "Enfócate en la postura y la respiración"),
            ("Wednesday", 3, "Mantén un ritmo constante"),
            ("Friday", 3, "Practica la colocación adecuada de los pies"),
        ]))
    for n in (3, 4):
        weeks.append(_week(n, 1, [
            ("Monday", 3, "Calienta adecuadamente"),
            ("Wednesday", 4, "Desarrolla resistencia gradualmente"),
            ("Friday", 3, "Enfócate en la técnica"),
            ("Sunday", 4, "Disfruta el recorrido"),
        ]))
    for n in (5, 6):
        weeks.append(_week(n, 1, [
            ("Monday", 4, "Ritmo constante"),
            ("Wednesday", 4, "Ritmo de respiración"),
            ("Friday", 4, "Conciencia de postura"),
            ("Sunday", 4, "Caminata de recuperación"),
        ]))
    for n in (7, 8):
        weeks.append(_week(n, 1, [
            ("Monday", 4, "Desarrolla consistencia"),
            ("Tuesday", 4, "Refinamiento de técnica"),
            ("Thursday", 4, "Desarrollo de resistencia"),
            ("Saturday", 4, "Fuerza del fin de semana"),
        ]))

    # Phase 2: Progressive increase (weeks 9-20), +0.5km per week
    base = 4.5
    for n in range(9, 21):
        week_in_phase = n - 8
        weeks.append(_week(n, 2, [
            ("Monday", round(base, 1), "Introduce subidas suaves" if week_in_phase <= 4 else "Práctica de técnica para subidas"),
            ("Wednesday", round(base + 0.5, 1), "Aumento progresivo de distancia"),
            ("Friday", round(base + 1, 1), "Desarrollo de resistencia"),
            ("Sunday", round(base + 1.5, 1), "Caminata de recuperación más larga"),
        ]))
        base += 0.5

    # Phase 3: Consolidation (weeks 21-36); every third week has five walks
    p3 = 6.0
    for n in range(21, 37):
        week_in_phase = n - 20
        if week_in_phase % 3 == 0:
            weeks.append(_week(n, 3, [
                ("Monday", p3, "Fuerza de inicio de semana"),
                ("Tuesday", p3, "Desarrollo de consistencia"),
                ("Thursday", p3 + 1, "Desafío de mitad de semana"),
                ("Friday", p3, "Enfoque en técnica"),
                ("Sunday", p3 + 2, "Caminata larga de fin de semana"),
            ]))
        else:
            weeks.append(_week(n, 3, [
                ("Monday", p3, "Práctica de ritmo sostenido"),
                ("Wednesday", p3 + 1, "Enfoque en resistencia"),
                ("Friday", p3, "Desarrollo de fuerza"),
                ("Sunday", p3 + 2, "Caminata de larga distancia"),
            ]))
        if week_in_phase % 4 == 0:
            p3 += 0.5

    # Phase 4: Advanced endurance (weeks 37-48); every other week has five walks
    p4_base, p4_long = 8.0, 12.0
    for n in range(37, 49):
        week_in_phase = n - 36
        if week_in_phase % 2 == 0:
            weeks.append(_week(n, 4, [
                ("Monday", p4_base, "Práctica de ritmo para todo el día"),
                ("Tuesday", p4_base + 1, "Desarrollo de resistencia"),
                ("Thursday", p4_base + 2, "Mantenimiento de fuerza"),
                ("Friday", p4_base, "Caminata de recuperación"),
                ("Sunday", p4_long, "Desafío de larga distancia"),
            ]))
        else:
            weeks.append(_week(n, 4, [
                ("Monday", p4_base, "Inicio de semana"),
                ("Wednesday", p4_base + 2, "Resistencia de mitad de semana"),
                ("Friday", p4_base + 1, "Enfoque en fuerza"),
                ("Sunday", p4_long, "Preparación de larga distancia"),
            ]))
        if week_in_phase % 3 == 0:
            p4_base += 0.5
            p4_long += 1

    # Phase 5: Peak and taper (weeks 49-52)
    weeks.append(_week(49, 5, [
        ("Monday", 8, "Inicio de semana máxima"),
        ("Wednesday", 10, "Construir hacia el máximo"),
        ("Friday", 6, "Recuperación antes de caminata larga"),
        ("Sunday", 18, "Caminata larga de distancia máxima"),
    ]))
    weeks.append(_week(50, 5, [
        ("Monday", 6, "Recuperación del máximo"),
        ("Wednesday", 5, "Mantenimiento ligero"),
        ("Friday", 5, "Ritmo fácil"),
        ("Sunday", 22, "Distancia larga máxima"),
    ]))
    weeks.append(_week(51, 5, [
        ("Monday", 5, "Comenzar reducción gradual"),
        ("Wednesday", 6, "Distancia moderada"),
        ("Saturday", 12, "Caminata larga final"),
    ]))
    weeks.append(_week(52, 5, [
        ("Monday", 3, "Movimiento ligero"),
        ("Wednesday", 2, "Caminata fácil"),
        ("Friday", 3, "Preparación final"),
    ]))

    return weeks


ALL_WEEKS: Tuple[Week, ...] = tuple(_generate_weeks())
_WEEKS_BY_NUMBER: Dict[int, Week] = {w.week_number: w for w in ALL_WEEKS}
_PHASES_BY_NUMBER: Dict[int, Phase] = {p.number: p for p in PHASES}


def get_week(week_number: int) -> Optional[Week]:
    return _WEEKS_BY_NUMBER.get(week_number)


def get_phase(phase_number: int) -> Optional[Phase]:
    return _PHASES_BY_NUMBER.get(phase_number)


def get_phase_for_week(week_number: int) -> Optional[Phase]:
    week = get_week(week_number)
    if week is None:
        return None
    return get_phase(week.phase_number)


def get_weeks_in_phase(phase_number: int) -> List[Week]:
    return [w for w in ALL_WEEKS if w.phase_number == phase_number]


def required_pairs(phase_number: int) -> set:
    """Every (week_number, day) pair that must be walked to complete a phase."""
    return {
        (w.week_number, d.day)
        for w in get_weeks_in_phase(phase_number)
        for d in w.days
    }
