"""CPU core: registers, flag helpers, opcode table."""
