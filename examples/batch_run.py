"""Run many CHIP-8 machines in parallel with jax.vmap and save their screens.

The program draws random 1-pixel dots forever, so every seed ends up with a
different picture.
"""
import time

import jax
import jax.numpy as jnp
import numpy as np

from chipvm import create_state, cycle, tick, load_program, save_frame

# loop: V0 = rnd & 63, V1 = rnd & 31, I = dot, draw, jump loop; dot sprite 0x80
DOTS = bytes([
    0xC0, 0x3F,  # 0x200 V0 = rnd & 0x3F
    0xC1, 0x1F,  # 0x202 V1 = rnd & 0x1F
    0xA2, 0x0A,  # 0x204 I = 0x20A
    0xD0, 0x11,  # 0x206 draw 1 row at (V0, V1)
    0x12, 0x00,  # 0x208 jump 0x200
    0x80,        # 0x20A dot
])

NUM_MACHINES = 16
FRAMES = 60
INSTRUCTIONS_PER_FRAME = 12


def run_frame(state, _):
    state = jax.lax.fori_loop(0, INSTRUCTIONS_PER_FRAME, lambda _, s: cycle(s), state)
    return tick(state), None


@jax.jit
def run(states):
    final, _ = jax.lax.scan(jax.vmap(run_frame), states, length=FRAMES)
    return final


if __name__ == "__main__":
    rngs = jax.random.split(jax.random.PRNGKey(0), NUM_MACHINES)
    states = jax.vmap(lambda rng: load_program(create_state(rng), DOTS))(rngs)

    start = time.time()
    final = jax.block_until_ready(run(states))
    print(f"{NUM_MACHINES} machines x {FRAMES * INSTRUCTIONS_PER_FRAME} instructions: {time.time() - start:.2f}s")

    for i in range(4):
        lit = int(jnp.sum(final.display[i]))
        save_frame(np.asarray(final.display[i]), f"dots_{i}.png", scale=4, color_scheme="green")
        print(f"machine {i}: {lit} pixels lit -> dots_{i}.png")
