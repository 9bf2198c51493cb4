from cafebracket.pairing.random_pairing import generate_pairings, shuffled

__all__ = ["generate_pairings", "shuffled"]
