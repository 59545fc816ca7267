"""Model of a small teaching kernel: image packer, module loader, heap, console, clock, semaphores, pipes, IDT, registers and a shell."""

__version__ = "0.1.0"