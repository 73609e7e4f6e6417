"""Segment presets: presentation style per stretch of the timeline.

Each speech span is classified as one of four presets (hook, talking-head,
talking-head-broll, futuristic-hud) by keyword heuristics, or by the
external classification collaborator when its output is available (see
suggestions.parse_classification). A preset restyles the captions inside
its segment and contributes its own effects and B-roll.

Everything generated here has an id in the reserved `preset_` namespace so
a later pass can strip it and regenerate without accumulating duplicates.
"""

import math
import re
from dataclasses import dataclass, replace

from .lexicon import normalize_word
from .models import (
    CaptionStyle,
    CaptionUnit,
    ColorGradeParams,
    EffectInstance,
    OverlayItem,
    Segment,
    SpeechSpan,
    TransitionParams,
    VignetteParams,
    ZoomParams,
)
from .timeutils import overlaps


PRESET_PREFIX = "preset_"


# ── Keyword tables ───────────────────────────────────────────────

TECH_KEYWORDS = frozenset({
    "ia", "inteligência artificial", "inteligencia artificial", "ai",
    "artificial intelligence", "tecnologia", "technology", "tech",
    "neural", "rede neural", "neurônio", "futuro", "future", "futurista",
    "futuristic", "dados", "data", "dataset", "big data", "algoritmo",
    "algorithm", "código", "code", "programação", "programming", "sistema",
    "system", "machine learning", "aprendizado de máquina", "deep learning",
    "aprendizado profundo", "automação", "automation", "robô", "robot",
    "robótica", "robotics", "blockchain", "crypto", "criptomoeda", "nuvem",
    "cloud", "computação", "digital", "virtual", "metaverso", "gpt",
    "chatgpt", "llm", "modelo de linguagem", "api", "software", "hardware",
    "iot", "internet das coisas", "quantum", "quântico", "cyber",
    "cibernético", "hacker", "hacking", "startup", "saas", "processamento",
    "servidor", "server", "python", "javascript", "react", "node",
})

VISUAL_KEYWORDS = frozenset({
    "mostrar", "show", "ver", "see", "olhar", "look", "produto", "product",
    "tela", "screen", "gráfico", "graph", "chart", "imagem", "image",
    "foto", "photo", "vídeo", "video", "resultado", "result", "exemplo",
    "example", "demonstração", "demo", "lugar", "place", "cidade", "city",
    "país", "country", "natureza", "nature", "paisagem", "landscape",
    "comida", "food", "receita", "recipe", "carro", "car", "casa", "house",
    "dinheiro", "money", "investimento", "investment", "livro", "book",
    "treino", "workout", "implementar", "implement", "construir", "build",
    "criar", "create", "fazer", "make", "projetar", "design",
    "desenvolver", "develop",
})

STOP_WORDS = frozenset({
    "a", "o", "e", "é", "de", "do", "da", "que", "em", "um", "uma", "para",
    "com", "não", "no", "na", "os", "as", "se", "por", "mais", "como",
    "mas", "foi", "ao", "dos", "das", "ele", "ela", "isso", "the", "an",
    "is", "are", "was", "and", "or", "to", "of", "in", "on", "at", "for",
    "it", "this", "that", "with", "from", "eu", "você", "nós", "eles",
    "aqui", "ali", "ser", "ter", "muito", "bem", "só", "já", "então",
    "vai", "vou", "pode", "quando", "onde", "qual", "quem", "seu", "sua",
    "meu", "minha",
})

EMBER_KEYWORDS = frozenset({
    "saúde", "health", "bem-estar", "wellness", "wellbeing", "vida", "life",
    "viver", "live", "qualidade", "corpo", "body", "mente", "mind", "alma",
    "soul", "natureza", "nature", "paz", "peace", "calma", "meditação",
    "meditation", "yoga", "respirar", "breathe", "exercício", "exercise",
    "fitness", "treino", "alimentação", "nutrition", "dieta", "diet",
    "sono", "sleep", "descanso", "rest", "longevidade", "longevity",
    "envelhecer", "aging", "felicidade", "happiness", "gratidão",
    "gratitude", "família", "family", "amor", "love", "relação",
    "aprender", "learn", "educação", "education", "livro", "book",
    "leitura", "reading", "viagem", "travel", "aventura", "adventure",
    "arte", "art", "música", "music", "criatividade", "produtividade",
    "productivity", "hábito", "habit", "rotina", "routine", "manhã",
    "morning", "sustentável", "sustainable", "orgânico", "organic",
})

VELOCITY_KEYWORDS = frozenset({
    "dinheiro", "money", "cash", "rico", "rich", "negócio", "business",
    "empresa", "company", "empreender", "empreendedor", "entrepreneur",
    "sucesso", "success", "vencer", "win", "ganhar", "crescer", "grow",
    "crescimento", "growth", "resultado", "result", "meta", "goal",
    "objetivo", "lucro", "profit", "renda", "income", "faturamento",
    "vendas", "sales", "vender", "sell", "marketing", "estratégia",
    "strategy", "liderança", "leadership", "líder", "leader", "competição",
    "competition", "competir", "compete", "poder", "power", "forte",
    "strong", "força", "velocidade", "speed", "rápido", "fast", "energia",
    "energy", "motivação", "motivation", "disciplina", "discipline", "foco",
    "focus", "mentalidade", "mindset", "mental", "desafio", "challenge",
    "superar", "overcome", "hustle", "grind", "scale", "escalar",
    "investir", "invest", "patrimônio", "wealth", "milionário",
    "millionaire", "bilionário", "liberdade", "freedom", "financeiro",
    "financial", "produtivo", "productive", "performance", "atitude",
    "attitude", "ação", "action", "transformar", "transform", "revolução",
    "revolution", "dominar", "dominate", "conquistar", "conquer",
    "impacto", "impact", "influência", "influence",
})

HOOK_WINDOW = 5.0
HUD_QUERY = (
    "futuristic technology HUD interface, digital hologram, "
    "neural network visualization, cinematic, blue cyan glow"
)


# ── Themes ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Theme:
    name: str
    highlight: str
    color_grade: str
    vignette: float
    caption_color: str = "#FFFFFF"
    shadow_color: str | None = None


THEMES = {
    "volt": Theme("volt", highlight="#CCFF00", color_grade="cinematic-warm", vignette=0.2),
    "ember": Theme(
        "ember", highlight="#D4835C", color_grade="ember-warm", vignette=0.28,
        caption_color="#F0E6D0", shadow_color="#D4835C",
    ),
    "velocity": Theme(
        "velocity", highlight="#FFD700", color_grade="velocity-gold", vignette=0.35,
        shadow_color="#FFD700",
    ),
}

# Caption style overrides per preset, applied to the base style.
PRESET_STYLES = {
    "hook": dict(
        font_size=72, bold=True, background_opacity=0.0, position="center",
        stroke_width=4, shadow_color="#FFD700", shadow_blur=20,
    ),
    "talking-head": dict(
        font_size=64, bold=True, background_opacity=0.0, position="bottom",
        stroke_width=3, shadow_color="#000000", shadow_blur=8,
    ),
    "talking-head-broll": dict(
        font_size=64, bold=True, background_opacity=0.0, position="bottom",
        stroke_width=3, shadow_color="#000000", shadow_blur=10,
    ),
    "futuristic-hud": dict(
        font_size=58, bold=True, color="#00FFFF", background_opacity=0.0,
        position="bottom", stroke_width=2, shadow_color="#00FFFF", shadow_blur=14,
    ),
}


def _tokens(text: str) -> list[str]:
    return [normalize_word(w) for w in text.split()]


def _keyword_hits(text: str, keywords: frozenset) -> int:
    return sum(1 for w in _tokens(text) if w in keywords)


def detect_theme(text: str) -> str:
    """Pick a visual theme from the whole transcript text.

    Business/energy vocabulary wins over lifestyle vocabulary; both need
    three hits. Falls back to volt.
    """
    if _keyword_hits(text, VELOCITY_KEYWORDS) >= 3:
        return "velocity"
    if _keyword_hits(text, EMBER_KEYWORDS) >= 3:
        return "ember"
    return "volt"


def preset_style(preset: str, theme: str, base: CaptionStyle | None = None) -> CaptionStyle:
    """Caption style for a preset under a theme, built from the base style."""
    base = base or CaptionStyle()
    overrides = dict(PRESET_STYLES.get(preset, {}))
    t = THEMES.get(theme, THEMES["volt"])
    if preset != "futuristic-hud":
        overrides["color"] = t.caption_color
        if t.shadow_color:
            overrides["shadow_color"] = t.shadow_color
    return replace(base, **overrides)


# ── Classification heuristics ────────────────────────────────────


def tech_score(text: str) -> int:
    """Tech keyword points; two-word phrases count double."""
    words = _tokens(text)
    score = sum(1 for w in words if w in TECH_KEYWORDS)
    for a, b in zip(words, words[1:]):
        if f"{a} {b}" in TECH_KEYWORDS:
            score += 2
    return score


def detect_preset(span: SpeechSpan, is_first: bool, has_broll: bool = False) -> str:
    if is_first and span.start < HOOK_WINDOW:
        return "hook"
    if tech_score(span.text) >= 2:
        return "futuristic-hud"
    if _keyword_hits(span.text, VISUAL_KEYWORDS) >= 1 or has_broll:
        return "talking-head-broll"
    return "talking-head"


def extract_keyword(text: str) -> str:
    """Most important word of a span, punctuation stripped."""
    words = text.split()
    if not words:
        return ""
    if len(words) <= 2:
        return re.sub(r"[.,!?;:'\"()]", "", words[0])

    best, best_score = words[0], -1
    for word in words:
        cleaned = normalize_word(word)
        if cleaned in STOP_WORDS or len(cleaned) <= 2:
            continue
        score = len(cleaned)
        if cleaned in TECH_KEYWORDS:
            score += 10
        if cleaned in VISUAL_KEYWORDS:
            score += 5
        if word[0].isupper():
            score += 3
        if any(c.isdigit() for c in word):
            score += 4
        if score > best_score:
            best, best_score = word, score
    return re.sub(r"[.,!?;:'\"()]", "", best)


def broll_query(text: str, preset: str) -> str:
    if preset == "futuristic-hud":
        return HUD_QUERY
    meaningful = [re.sub(r"[.,!?;:'\"()]", "", w) for w in text.split()]
    meaningful = [w for w in meaningful if len(w) > 3][:4]
    return f"cinematic {' '.join(meaningful)}, professional photography, high quality, 16:9"


def partition_segments(segments: list[Segment], duration: float) -> list[Segment]:
    """Stretch segments so they tile [0, duration] without gaps.

    Each segment runs from the previous one's end to the next one's start;
    the first starts at 0 and the last ends at duration. Segments that
    collapse to nothing are dropped.
    """
    ordered = sorted(
        (s for s in segments if s.start < duration), key=lambda s: s.start,
    )
    result = []
    for i, seg in enumerate(ordered):
        start = result[-1].end if result else 0.0
        end = ordered[i + 1].start if i + 1 < len(ordered) else duration
        end = min(max(end, start), duration)
        if end <= start:
            continue
        result.append(replace(seg, start=start, end=end))
    if result and result[-1].end < duration:
        result[-1] = replace(result[-1], end=duration)
    return result


def classify_spans(
    spans: list[SpeechSpan],
    duration: float,
    overlays: list[OverlayItem] = (),
) -> list[Segment]:
    """Heuristic segment classification covering the whole timeline."""
    segments = []
    for i, span in enumerate(spans):
        if not span.text.strip():
            continue
        has_broll = any(overlaps(o.start, o.end, span.start, span.end) for o in overlays)
        preset = detect_preset(span, is_first=not segments, has_broll=has_broll)
        segments.append(heuristic_segment(span, i, preset))
    return partition_segments(segments, duration)


def heuristic_segment(span: SpeechSpan, index: int, preset: str) -> Segment:
    return Segment(
        id=f"seg_{index}",
        start=span.start,
        end=span.end,
        text=span.text,
        preset=preset,
        keyword=extract_keyword(span.text),
        broll_query=broll_query(span.text, preset),
        confidence=0.8,
    )


# ── Preset application ───────────────────────────────────────────


def _effect(id, kind, start, end, params, duration):
    start, end = max(0.0, start), min(duration, end)
    if end <= start:
        return None
    return EffectInstance(f"{PRESET_PREFIX}{id}", kind, start, end, params)


def _segment_effects(seg: Segment, duration: float) -> tuple[list, list]:
    """Effects and B-roll items contributed by one segment's preset."""
    length = seg.end - seg.start
    effects, overlays = [], []

    if seg.preset == "hook":
        effects.append(_effect(
            f"hook_zoom_{seg.id}", "zoom-in", seg.start, seg.end,
            ZoomParams(scale=1.55, focus_x=0.5, focus_y=0.3), duration,
        ))
        if seg.start < 0.5:
            effects.append(_effect(
                f"hook_fadein_{seg.id}", "transition-fade", 0.0, min(0.5, length * 0.3),
                TransitionParams(duration=0.5), duration,
            ))
        effects.append(_effect(
            f"hook_cut_{seg.id}", "transition-glitch", seg.end - 0.15, seg.end + 0.1,
            TransitionParams(duration=0.25, intensity=3), duration,
        ))

    elif seg.preset == "talking-head":
        if length > 2:
            for i in range(max(1, math.floor(length / 3))):
                p_start = seg.start + i * 3
                p_end = min(p_start + 3, seg.end)
                if p_end - p_start < 1:
                    break
                effects.append(_effect(
                    f"th_pulse_{seg.id}_{i}", "zoom-in" if i % 2 == 0 else "zoom-out",
                    p_start, p_end, ZoomParams(scale=1.18, focus_x=0.5, focus_y=0.35),
                    duration,
                ))
        else:
            effects.append(_effect(
                f"th_zoom_{seg.id}", "zoom-pulse", seg.start, seg.end,
                ZoomParams(scale=1.06), duration,
            ))

    elif seg.preset == "talking-head-broll":
        b_start = seg.start + length * 0.2
        b_end = seg.start + length * 0.75
        if b_end - b_start > 0.5:
            overlays.append(OverlayItem(
                id=f"{PRESET_PREFIX}broll_{seg.id}",
                asset_ref=f"{PRESET_PREFIX}broll_{seg.id}",
                start=b_start, end=b_end, motion="ken-burns", opacity=0.95,
                placement="fullscreen", prompt=seg.broll_query,
            ))
            effects.append(_effect(
                f"thbr_zoom_{seg.id}", "zoom-in", b_start, b_end,
                ZoomParams(scale=1.12, focus_x=0.5, focus_y=0.5), duration,
            ))

    elif seg.preset == "futuristic-hud":
        effects.append(_effect(
            f"hud_color_{seg.id}", "color-grade", seg.start, seg.end,
            ColorGradeParams(preset="cold-thriller"), duration,
        ))
        effects.append(_effect(
            f"hud_vignette_{seg.id}", "vignette", seg.start, seg.end,
            VignetteParams(intensity=0.45), duration,
        ))
        if length > 1.5:
            b_start = seg.start + length * 0.15
            b_end = seg.end - length * 0.1
            overlays.append(OverlayItem(
                id=f"{PRESET_PREFIX}hud_broll_{seg.id}",
                asset_ref=f"{PRESET_PREFIX}hud_broll_{seg.id}",
                start=b_start, end=b_end, motion="ken-burns", opacity=0.85,
                placement="fullscreen", prompt=seg.broll_query,
            ))
            effects.append(_effect(
                f"hud_zoom_{seg.id}", "zoom-pulse", b_start, b_end,
                ZoomParams(scale=1.1), duration,
            ))
        effects.append(_effect(
            f"hud_glitch_{seg.id}", "transition-glitch", seg.end - 0.2, seg.end + 0.1,
            TransitionParams(duration=0.3, intensity=4), duration,
        ))

    return [e for e in effects if e is not None], overlays


def _restyle(unit: CaptionUnit, seg: Segment, theme: str, base: CaptionStyle) -> CaptionUnit:
    # Segmented captions hold at most two words; longer units come from
    # loaded or hand-edited plans.
    if seg.preset == "hook" or len(unit.words) <= 2:
        animation = "pop"
    elif seg.preset == "futuristic-hud":
        animation = "glow"
    else:
        animation = "karaoke"
    return replace(
        unit,
        style=preset_style(seg.preset, theme, base),
        animation=animation,
        emphasis=(seg.keyword.upper(),) if seg.keyword else unit.emphasis,
    )


def apply_presets(
    segments: list[Segment],
    captions: list[CaptionUnit],
    theme: str,
    duration: float,
    base_style: CaptionStyle | None = None,
) -> tuple[list[CaptionUnit], list[EffectInstance], list[OverlayItem]]:
    """Apply every segment's preset.

    A caption belongs to the last segment whose range contains its start
    (with 0.05 s slack). Global colour grade and vignette for the theme are
    added unless a preset already covers most of the timeline.

    Returns:
        (restyled captions, preset effects, preset B-roll items).
    """
    base_style = base_style or CaptionStyle()
    t = THEMES.get(theme, THEMES["volt"])

    owner = {}
    effects, overlays = [], []
    for seg in segments:
        for unit in captions:
            if seg.start - 0.05 <= unit.start < seg.end + 0.05:
                owner[unit.id] = seg
        seg_effects, seg_overlays = _segment_effects(seg, duration)
        effects += seg_effects
        overlays += seg_overlays

    restyled = [
        _restyle(unit, owner[unit.id], theme, base_style) if unit.id in owner else unit
        for unit in captions
    ]

    def _has_global(kind):
        return any(e.kind == kind and e.duration > duration * 0.8 for e in effects)

    if duration > 0 and not _has_global("color-grade"):
        effects.append(EffectInstance(
            f"{PRESET_PREFIX}global_colorgrade", "color-grade", 0.0, duration,
            ColorGradeParams(preset=t.color_grade),
        ))
    if duration > 0 and not _has_global("vignette"):
        effects.append(EffectInstance(
            f"{PRESET_PREFIX}global_vignette", "vignette", 0.0, duration,
            VignetteParams(intensity=t.vignette),
        ))
    return restyled, effects, overlays
