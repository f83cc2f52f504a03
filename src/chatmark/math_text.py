# -*- coding: utf-8 -*-
"""
LaTeX → Unicode approximation for math display.

Qt's rich text has no math typesetting, so expressions are shown as Unicode
text: Greek letters and operators become their symbols, ``\\frac{a}{b}``
becomes ``a⁄b`` or ``(a)/(b)``, simple super- and subscripts become Unicode
superscript/subscript characters.
"""

import re
from typing import Dict

_SYMBOL_GROUPS = {
    "greek": {
        "alpha": "α", "beta": "β", "gamma": "γ", "delta": "δ", "epsilon": "ε",
        "varepsilon": "ε", "zeta": "ζ", "eta": "η", "theta": "θ", "vartheta": "ϑ",
        "iota": "ι", "kappa": "κ", "lambda": "λ", "mu": "μ", "nu": "ν", "xi": "ξ",
        "pi": "π", "varpi": "ϖ", "rho": "ρ", "varrho": "ϱ", "sigma": "σ",
        "varsigma": "ς", "tau": "τ", "upsilon": "υ", "phi": "φ", "varphi": "ϕ",
        "chi": "χ", "psi": "ψ", "omega": "ω",
        "Gamma": "Γ", "Delta": "Δ", "Theta": "Θ", "Lambda": "Λ", "Xi": "Ξ",
        "Pi": "Π", "Sigma": "Σ", "Upsilon": "Υ", "Phi": "Φ", "Psi": "Ψ", "Omega": "Ω",
    },
    "operators": {
        "times": "×", "cdot": "·", "div": "÷", "pm": "±", "mp": "∓",
        "leq": "≤", "le": "≤", "geq": "≥", "ge": "≥", "neq": "≠", "ne": "≠",
        "approx": "≈", "equiv": "≡", "sim": "∼", "simeq": "≃", "cong": "≅",
        "ll": "≪", "gg": "≫", "propto": "∝",
        "subset": "⊂", "supset": "⊃", "subseteq": "⊆", "supseteq": "⊇",
        "in": "∈", "notin": "∉", "ni": "∋", "cup": "∪", "cap": "∩", "setminus": "∖",
        "land": "∧", "wedge": "∧", "lor": "∨", "vee": "∨", "neg": "¬", "lnot": "¬",
        "forall": "∀", "exists": "∃", "partial": "∂", "nabla": "∇", "infty": "∞",
        "angle": "∠", "perp": "⊥", "parallel": "∥", "circ": "∘", "oplus": "⊕",
        "otimes": "⊗", "ast": "∗",
        "dots": "…", "ldots": "…", "cdots": "⋯", "vdots": "⋮", "ddots": "⋱",
    },
    "arrows": {
        "to": "→", "rightarrow": "→", "leftarrow": "←", "gets": "←",
        "Rightarrow": "⇒", "Leftarrow": "⇐", "implies": "⟹", "iff": "⟺",
        "leftrightarrow": "↔", "Leftrightarrow": "⇔",
        "uparrow": "↑", "downarrow": "↓", "mapsto": "↦",
        "longrightarrow": "⟶", "longleftarrow": "⟵",
    },
    "big_operators": {
        "sum": "∑", "prod": "∏", "coprod": "∐",
        "int": "∫", "iint": "∬", "iiint": "∭", "oint": "∮",
        "bigcup": "⋃", "bigcap": "⋂",
    },
    "misc": {
        "hbar": "ℏ", "ell": "ℓ", "Re": "ℜ", "Im": "ℑ", "aleph": "ℵ",
        "emptyset": "∅", "varnothing": "∅", "triangle": "△", "star": "⋆",
        "dagger": "†", "ddagger": "‡", "prime": "′", "degree": "°",
        "langle": "⟨", "rangle": "⟩", "lceil": "⌈", "rceil": "⌉",
        "lfloor": "⌊", "rfloor": "⌋", "lbrace": "{", "rbrace": "}",
        "quad": "  ", "qquad": "    ",
    },
}

_FUNCTION_NAMES = (
    "lim", "limsup", "liminf", "sin", "cos", "tan", "arcsin", "arccos", "arctan",
    "sinh", "cosh", "tanh", "sec", "csc", "cot", "log", "ln", "lg", "exp",
    "det", "dim", "min", "max", "sup", "inf", "arg", "deg", "gcd", "ker", "hom",
)

# Spacing commands
_PUNCT_COMMANDS = {",": " ", ";": " ", ":": " ", "!": "", " ": " "}


def _build_symbols() -> Dict[str, str]:
    symbols: Dict[str, str] = {}
    for group in _SYMBOL_GROUPS.values():
        symbols.update(group)
    symbols.update({name: name for name in _FUNCTION_NAMES})
    symbols.update({"limsup": "lim sup", "liminf": "lim inf", "bmod": "mod", "pmod": "mod", "mod": "mod"})
    return symbols


_SYMBOLS = _build_symbols()

_SUPERSCRIPTS = dict(zip(
    "0123456789+-=()niabcdefghjklmoprstuvwxyzT",
    "⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻⁼⁽⁾ⁿⁱᵃᵇᶜᵈᵉᶠᵍʰʲᵏˡᵐᵒᵖʳˢᵗᵘᵛʷˣʸᶻᵀ",
))
_SUBSCRIPTS = dict(zip(
    "0123456789+-=()aehijklmnoprstuvx",
    "₀₁₂₃₄₅₆₇₈₉₊₋₌₍₎ₐₑₕᵢⱼₖₗₘₙₒₚᵣₛₜᵤᵥₓ",
))

# One level of nested braces
_BRACED = r"\{([^{}]*(?:\{[^{}]*\}[^{}]*)*)\}"

_STYLE_RE = re.compile(r"\\(?:display|text|script|scriptscript)style\b")
_WRAPPER_RE = re.compile(
    r"\\(?:text|textrm|textbf|textit|mathrm|mathbf|mathit|mathsf|mathtt|mathcal|mathbb|mathfrak"
    r"|operatorname|boldsymbol|bm)" + _BRACED
)
_DELIMITER_SIZE_RE = re.compile(r"\\(?:left|right|big|Big|bigg|Bigg)(?![A-Za-z])")
_FRAC_RE = re.compile(r"\\[dt]?frac" + _BRACED + _BRACED)
_ROOT_RE = re.compile(r"\\sqrt\[([^\]]+)\]" + _BRACED)
_SQRT_RE = re.compile(r"\\sqrt" + _BRACED)
_SUP_GROUP_RE = re.compile(r"\^" + _BRACED)
_SUP_CHAR_RE = re.compile(r"\^([A-Za-z0-9+\-])")
_SUB_GROUP_RE = re.compile(r"_" + _BRACED)
_SUB_CHAR_RE = re.compile(r"_([A-Za-z0-9])")
_COMMAND_RE = re.compile(r"\\([A-Za-z]+|[,;:! ])")
_SPACES_RE = re.compile(r"  +")


def latex_to_unicode(latex: str) -> str:
    """Convert a LaTeX math expression to a Unicode approximation."""
    text = latex.strip()
    text = _STYLE_RE.sub("", text)
    text = _WRAPPER_RE.sub(r"\1", text)
    text = _DELIMITER_SIZE_RE.sub("", text)
    text = _FRAC_RE.sub(_frac, text)
    text = _ROOT_RE.sub(_nth_root, text)
    text = _SQRT_RE.sub(_sqrt, text)
    text = _SUP_GROUP_RE.sub(lambda m: _map_chars(latex_to_unicode(m.group(1)), _SUPERSCRIPTS), text)
    text = _SUP_CHAR_RE.sub(lambda m: _SUPERSCRIPTS.get(m.group(1), "^" + m.group(1)), text)
    text = _SUB_GROUP_RE.sub(lambda m: _map_chars(latex_to_unicode(m.group(1)), _SUBSCRIPTS), text)
    text = _SUB_CHAR_RE.sub(lambda m: _SUBSCRIPTS.get(m.group(1), "_" + m.group(1)), text)
    text = _COMMAND_RE.sub(_command, text)
    text = text.replace("{", "").replace("}", "")
    return _SPACES_RE.sub(" ", text).strip()


def _map_chars(text: str, table: Dict[str, str]) -> str:
    return "".join(table.get(char, char) for char in text)


def _frac(match: "re.Match[str]") -> str:
    numerator = latex_to_unicode(match.group(1))
    denominator = latex_to_unicode(match.group(2))
    if len(numerator) == 1 and len(denominator) == 1:
        return f"{numerator}⁄{denominator}"
    return f"({numerator})/({denominator})"


def _nth_root(match: "re.Match[str]") -> str:
    degree = _map_chars(match.group(1), _SUPERSCRIPTS)
    return f"{degree}√({latex_to_unicode(match.group(2))})"


def _sqrt(match: "re.Match[str]") -> str:
    body = latex_to_unicode(match.group(1))
    return f"√{body}" if len(body) <= 2 else f"√({body})"


def _command(match: "re.Match[str]") -> str:
    name = match.group(1)
    if name in _PUNCT_COMMANDS:
        return _PUNCT_COMMANDS[name]
    if name == "sqrt":
        return "√"
    return _SYMBOLS.get(name, match.group(0))
