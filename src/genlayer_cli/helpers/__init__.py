"""Output, prompts, amounts and web3 helpers shared by the commands."""
